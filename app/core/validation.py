"""
Input Validation Utilities

Provides validation shared by request schemas and domain services:
- Monetary amounts (Decimal, 2 decimal places)
- Shipping address completeness
- Text sanitization for injection prevention
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


CENT = Decimal("0.01")


class ValidationPatterns:
    """Regex patterns for validation"""

    SQL_INJECTION_PATTERNS = [
        # SQL comments
        re.compile(r"--\s*$|/\*|\*/", re.IGNORECASE),
        # Classic ' OR '1'='1
        re.compile(r"['\"]\s*(OR|AND)\s+['\"]?\w*['\"]?\s*=", re.IGNORECASE),
        # Tautologies: OR 1=1
        re.compile(r"\b(OR|AND)\s+(\d+\s*=\s*\d+|'[^']*'\s*=\s*'[^']*'|\"[^\"]*\"\s*=\s*\"[^\"]*\")", re.IGNORECASE),
        # Chained commands (; DROP TABLE)
        re.compile(r";\s*(SELECT|INSERT|UPDATE|DELETE|DROP|ALTER|CREATE|TRUNCATE)\b", re.IGNORECASE),
        re.compile(r"\bUNION\s+(ALL\s+)?SELECT\b", re.IGNORECASE),
    ]

    XSS_PATTERNS = [
        re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL),
        re.compile(r"javascript:", re.IGNORECASE),
        # Event handlers at a word boundary (onclick=), not "condition ="
        re.compile(r"\bon\w+=", re.IGNORECASE),
        re.compile(r"<iframe", re.IGNORECASE),
    ]


class TextSanitizer:
    """Text sanitization for security"""

    @staticmethod
    def sanitize(text: str | None, max_length: int = 1000) -> str:
        """
        Sanitize text input for safe storage.

        Trims whitespace, enforces max length, removes null bytes and
        collapses repeated spaces. HTML escaping happens at display time.
        """
        if not text:
            return ""

        sanitized = text.strip()[:max_length]
        sanitized = sanitized.replace("\x00", "")
        sanitized = re.sub(r" +", " ", sanitized)
        return sanitized

    @staticmethod
    def check_for_injection(text: str | None) -> tuple[bool, str | None]:
        """
        Check text for potential injection attacks.

        Returns:
            Tuple of (is_safe, detected_pattern)
        """
        if not text:
            return True, None

        for pattern in ValidationPatterns.SQL_INJECTION_PATTERNS:
            if pattern.search(text):
                return False, "SQL injection pattern detected"

        for pattern in ValidationPatterns.XSS_PATTERNS:
            if pattern.search(text):
                return False, "XSS pattern detected"

        return True, None


class AmountValidator:
    """Monetary amount validation"""

    @staticmethod
    def to_money(amount: Any) -> Decimal:
        """
        Convert a float/str/int/Decimal to a 2-place Decimal.

        Floats go through str() so 0.1 stays 0.10 and not 0.1000000000000000055.

        Raises:
            ValueError: if the value is not a finite number
        """
        if isinstance(amount, bool):
            raise ValueError(f"Invalid amount: {amount!r}")
        try:
            value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, TypeError):
            raise ValueError(f"Invalid amount: {amount!r}")
        if not value.is_finite():
            raise ValueError(f"Invalid amount: {amount!r}")
        return value.quantize(CENT, rounding=ROUND_HALF_UP)

    @staticmethod
    def validate(
        amount: Any,
        min_value: Decimal | float = Decimal("0.00"),
        max_value: Decimal | float = Decimal("1000000.00")
    ) -> tuple[bool, str | None]:
        """
        Validate monetary amount.

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, TypeError):
            return False, "Amount must be a number"

        if not value.is_finite():
            return False, "Amount must be a number"

        min_dec = Decimal(str(min_value))
        max_dec = Decimal(str(max_value))

        if value < min_dec:
            return False, f"Amount must be at least {min_dec:.2f}"

        if value > max_dec:
            return False, f"Amount cannot exceed {max_dec:.2f}"

        if value != value.quantize(CENT):
            return False, "Amount cannot have more than 2 decimal places"

        return True, None


class ShippingAddressValidator:
    """Shipping address completeness checks"""

    REQUIRED_FIELDS = ("full_name", "address", "city", "state", "zip_code", "country", "phone")

    FIELD_LABELS = {
        "full_name": "Full name",
        "address": "Address",
        "city": "City",
        "state": "State",
        "zip_code": "Zip code",
        "country": "Country",
        "phone": "Phone",
    }

    @classmethod
    def validate(cls, shipping: dict[str, Any] | None) -> tuple[bool, str | None, str | None]:
        """
        Validate that every address field is present and safe.

        Returns:
            Tuple of (is_valid, error_message, field)
        """
        if not shipping:
            return False, "Shipping address is required", "shipping_address"

        for field in cls.REQUIRED_FIELDS:
            value = shipping.get(field)
            if value is None or not str(value).strip():
                return False, f"{cls.FIELD_LABELS[field]} is required", field
            is_safe, pattern = TextSanitizer.check_for_injection(str(value))
            if not is_safe:
                return False, f"Invalid {cls.FIELD_LABELS[field].lower()}: {pattern}", field

        return True, None, None

    @classmethod
    def normalize(cls, shipping: dict[str, Any]) -> dict[str, str]:
        return {
            field: TextSanitizer.sanitize(str(shipping[field]), max_length=500)
            for field in cls.REQUIRED_FIELDS
        }


def money_validator(v: Any) -> Decimal:
    """Pydantic field validator for positive money amounts"""
    value = AmountValidator.to_money(v)
    is_valid, error = AmountValidator.validate(v, min_value=CENT)
    if not is_valid:
        raise ValueError(error)
    return value


def sanitized_text_validator(v: str | None, max_length: int = 1000) -> str | None:
    """Pydantic field validator for free text"""
    if v is None:
        return None
    is_safe, pattern = TextSanitizer.check_for_injection(v)
    if not is_safe:
        raise ValueError(f"Invalid text: {pattern}")
    return TextSanitizer.sanitize(v, max_length=max_length)
