"""Short code generation utilities."""

import secrets
import string
from typing import Optional

from .errors import InvalidCodeError


class ShortCodeGenerator:
    """Generate, encode and validate short codes."""

    # Base62 characters, ordered so that encode(0) == "0"
    BASE62_CHARS = string.digits + string.ascii_uppercase + string.ascii_lowercase
    BASE = len(BASE62_CHARS)

    def __init__(self, default_length: int = 6):
        """Initialize short code generator.

        Args:
            default_length: Length of generated codes
        """
        if default_length < 1:
            raise ValueError("default_length must be positive")
        self.default_length = default_length
        self._index = {char: i for i, char in enumerate(self.BASE62_CHARS)}

    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random short code from a cryptographically strong source.

        Args:
            length: Length of the code (uses default if not specified)

        Returns:
            Random short code
        """
        length = length or self.default_length
        return ''.join(secrets.choice(self.BASE62_CHARS) for _ in range(length))

    def encode(self, number: int) -> str:
        """Convert a non-negative integer to a base62 string.

        Most significant symbol first; 0 encodes to the first alphabet symbol.
        """
        if number < 0:
            raise ValueError(f"Cannot encode negative number: {number}")
        if number == 0:
            return self.BASE62_CHARS[0]

        result = []
        while number > 0:
            number, remainder = divmod(number, self.BASE)
            result.append(self.BASE62_CHARS[remainder])

        return ''.join(reversed(result))

    def decode(self, code: str) -> int:
        """Convert a base62 string back to an integer.

        Raises:
            InvalidCodeError: If the code is empty or has a symbol outside the alphabet
        """
        if not code:
            raise InvalidCodeError("Cannot decode an empty code")

        result = 0
        for char in code:
            index = self._index.get(char)
            if index is None:
                raise InvalidCodeError(f"Invalid symbol {char!r} in code {code!r}")
            result = result * self.BASE + index

        return result

    def derive_from_id(self, number: int, length: Optional[int] = None) -> str:
        """Generate short code from a numeric ID.

        Codes shorter than the target length are front-padded with random
        symbols; the trailing ``len(encode(number))`` symbols still decode
        to ``number``.

        Args:
            number: Non-negative ID
            length: Minimum length of the code (uses default if not specified)

        Returns:
            Short code based on the ID
        """
        length = length or self.default_length
        code = self.encode(number)

        if len(code) < length:
            code = self.generate_random(length - len(code)) + code

        return code

    def is_valid_code(self, code: str) -> bool:
        """Check that every symbol of the code is in the alphabet.

        Length bounds are the caller's concern.
        """
        if not code or not isinstance(code, str):
            return False
        return all(c in self._index for c in code)
