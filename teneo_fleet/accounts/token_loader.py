# Token Loader - Account Credentials
# Reads the line-delimited access token file

"""
Token Loader Module

Responsibilities:
- Read the token file (one access token per line)
- Trim whitespace and drop blank lines
- Preserve file order (line rank + 1 = account index)
- Fail loudly when the file is missing, unreadable or empty
"""

from pathlib import Path
from typing import List, Union


class TokenFileError(Exception):
    """Raised when the token file cannot provide any usable token"""


def parse_tokens(text: str) -> List[str]:
    """
    Split raw file content into tokens

    Args:
        text: Raw file content

    Returns:
        Non-blank, trimmed lines in file order
    """
    return [line.strip() for line in text.splitlines() if line.strip()]


def load_tokens(path: Union[str, Path]) -> List[str]:
    """
    Load access tokens from file

    Args:
        path: Token file path

    Returns:
        List of tokens in file order

    Raises:
        TokenFileError: If the file cannot be read or contains no token
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TokenFileError(f"cannot read {path}: {e}") from e

    tokens = parse_tokens(text)
    if not tokens:
        raise TokenFileError(f"no tokens found in {path}")
    return tokens
