"""
Secret Masking Filter Tests

Tests that credentials and customer data never reach the log files:
- Paystack keys, bearer tokens and session cookies
- Passwords, emails and Nigerian phone numbers
- Password reset links stay readable (they are delivered through the log)

Run with:
    pytest tests/utils/unit/test_logging_filter.py -v
"""

import logging

import pytest

from utils.logging_config import SecretMaskingFilter


def make_record(msg, *args) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args or None, None)


@pytest.fixture
def masking_filter():
    return SecretMaskingFilter()


class TestSecretMasking:

    def test_paystack_secret_key(self, masking_filter):
        masked = masking_filter.mask("Using sk_live_4f8a9b0c1d2e3f4a5b6c")
        assert "4f8a9b0c1d2e3f4a5b6c" not in masked
        assert "sk_live_[REDACTED_PAYSTACK_KEY]" in masked

    def test_paystack_public_key(self, masking_filter):
        assert masking_filter.mask("pk_test_abc123") == "pk_test_[REDACTED_PAYSTACK_KEY]"

    def test_bearer_token(self, masking_filter):
        masked = masking_filter.mask("Authorization: Bearer abc.def-123")
        assert masked == "Authorization: Bearer [REDACTED_BEARER_TOKEN]"

    def test_session_cookie(self, masking_filter):
        masked = masking_filter.mask("cookie mkw_session=Zm9vYmFyYmF6 mk_guest=3f2c0e1a-11aa")
        assert "Zm9vYmFyYmF6" not in masked
        assert "3f2c0e1a-11aa" not in masked

    def test_password(self, masking_filter):
        masked = masking_filter.mask('{"password": "hunter22"}')
        assert "hunter22" not in masked
        assert "[REDACTED_PASSWORD]" in masked

    def test_email(self, masking_filter):
        assert masking_filter.mask("order for amina@example.com") == "order for [REDACTED_EMAIL]"

    @pytest.mark.parametrize("phone", ["08031234567", "+2348031234567", "2349031234567"])
    def test_nigerian_phone_numbers(self, masking_filter, phone):
        assert masking_filter.mask(f"call {phone} today") == "call [REDACTED_PHONE] today"

    def test_plain_text_untouched(self, masking_filter):
        text = "Order 3F2C0E1A moved PENDING_PAYMENT -> PROCESSING (1250000 kobo)"
        assert masking_filter.mask(text) == text


class TestFilterRecords:

    def test_message_and_args_masked(self, masking_filter):
        record = make_record("login %s with %s", "amina@example.com", "sk_test_abcdef")
        assert masking_filter.filter(record) is True
        assert record.getMessage() == "login [REDACTED_EMAIL] with sk_test_[REDACTED_PAYSTACK_KEY]"

    def test_non_string_args_kept(self, masking_filter):
        record = make_record("total %d kobo", 1250000)
        masking_filter.filter(record)
        assert record.getMessage() == "total 1250000 kobo"

    def test_password_reset_link_not_masked(self, masking_filter):
        link = "[PASSWORD_RESET_LINK] http://shop.test/auth/reset-password?token=abcdefghijklmnopqrstuvwxyz0123&email=amina%40example.com"
        record = make_record(link)
        masking_filter.filter(record)
        assert record.getMessage() == link
