"""Signature verification levels and the SigLevel token algebra."""

from enum import Flag, IntFlag, auto

from pacreader.errors import InvalidSigLevelError

# database bits mirror the package bits this many places higher
DATABASE_SHIFT = 10


class SigLevel(IntFlag):
    """Signature checking bitmask, bit-compatible with the package engine."""

    PACKAGE = 1 << 0
    PACKAGE_OPTIONAL = 1 << 1
    PACKAGE_MARGINAL_OK = 1 << 2
    PACKAGE_UNKNOWN_OK = 1 << 3

    DATABASE = 1 << 10
    DATABASE_OPTIONAL = 1 << 11
    DATABASE_MARGINAL_OK = 1 << 12
    DATABASE_UNKNOWN_OK = 1 << 13

    USE_DEFAULT = 1 << 31


PACKAGE_BITS = (
    SigLevel.PACKAGE | SigLevel.PACKAGE_OPTIONAL | SigLevel.PACKAGE_MARGINAL_OK | SigLevel.PACKAGE_UNKNOWN_OK
)
TRUST_BITS = SigLevel.PACKAGE_MARGINAL_OK | SigLevel.PACKAGE_UNKNOWN_OK


class SigScope(Flag):
    """Which half of a SigLevel a token applies to."""

    PACKAGE = auto()
    DATABASE = auto()
    BOTH = PACKAGE | DATABASE


def scoped_bits(scope: SigScope, package_bits: int) -> SigLevel:
    """Expand package-side bits to the bits `scope` covers.

    Args:
        scope: Target scope
        package_bits: Bits expressed on the package side (e.g. `SigLevel.PACKAGE_OPTIONAL`)

    Returns:
        The same bits on the package side, the database side, or both
    """
    bits = 0
    if SigScope.PACKAGE in scope:
        bits |= int(package_bits)
    if SigScope.DATABASE in scope:
        bits |= int(package_bits) << DATABASE_SHIFT
    return SigLevel(bits)


def set_bits(level: int, scope: SigScope, package_bits: int) -> SigLevel:
    return SigLevel(int(level) | scoped_bits(scope, package_bits))


def clear_bits(level: int, scope: SigScope, package_bits: int) -> SigLevel:
    return SigLevel(int(level) & ~int(scoped_bits(scope, package_bits)))


def split_scope(token: str) -> tuple[SigScope, str]:
    """Strip a `Package`/`Database` prefix from a token.

    Examples:
        >>> split_scope("DatabaseOptional")
        (<SigScope.DATABASE: 2>, 'Optional')
    """
    if token.startswith("Package"):
        return SigScope.PACKAGE, token.removeprefix("Package")
    if token.startswith("Database"):
        return SigScope.DATABASE, token.removeprefix("Database")
    return SigScope.BOTH, token


def parse_siglevel(tokens: list[str] | tuple[str, ...], base: int = SigLevel.USE_DEFAULT) -> SigLevel:
    """Apply SigLevel tokens, left to right, on top of `base`.

    Args:
        tokens: Values of a SigLevel directive (e.g. `["Required", "DatabaseOptional"]`)
        base: Level to start from

    Returns:
        The resulting level; `USE_DEFAULT` is cleared as soon as one token is applied

    Raises:
        InvalidSigLevelError: if any token is not recognized
    """
    level = SigLevel(base)
    for token in tokens:
        level = SigLevel(int(level) & ~int(SigLevel.USE_DEFAULT))
        scope, directive = split_scope(token)
        match directive:
            case "Never":
                level = clear_bits(level, scope, SigLevel.PACKAGE)
            case "Optional":
                level = set_bits(level, scope, SigLevel.PACKAGE | SigLevel.PACKAGE_OPTIONAL)
            case "Required":
                level = set_bits(level, scope, SigLevel.PACKAGE)
                level = clear_bits(level, scope, SigLevel.PACKAGE_OPTIONAL)
            case "TrustedOnly":
                level = clear_bits(level, scope, TRUST_BITS)
            case "TrustAll":
                level = set_bits(level, scope, TRUST_BITS)
            case _:
                raise InvalidSigLevelError(f"invalid signature level {token}")
    return level


def _signing_directives(bits: int) -> tuple[str, ...]:
    required = bool(bits & SigLevel.PACKAGE)
    optional = bool(bits & SigLevel.PACKAGE_OPTIONAL)
    if required and optional:
        return ("Optional",)
    if required:
        return ("Required",)
    if optional:
        # Never clears only the check bit, leaving optional behind
        return ("Optional", "Never")
    return ("Never",)


def _trusts_all(bits: int, level: int) -> bool:
    trust = bits & TRUST_BITS
    if trust and trust != TRUST_BITS:
        raise InvalidSigLevelError(
            f"signature level {int(level):#x} trusts only one of marginal/unknown keys"
        )
    return bool(trust)


def format_siglevel(level: int) -> list[str]:
    """Render a level as the shortest token list that parses back to it.

    Returns an empty list for `USE_DEFAULT`.

    Raises:
        InvalidSigLevelError: if no token sequence can produce `level`
    """
    if int(level) & SigLevel.USE_DEFAULT:
        return []

    pkg = int(level) & PACKAGE_BITS
    db = (int(level) >> DATABASE_SHIFT) & PACKAGE_BITS

    tokens: list[str] = []
    pkg_sign, db_sign = _signing_directives(pkg), _signing_directives(db)
    if pkg_sign == db_sign:
        tokens.extend(pkg_sign)
    else:
        tokens.extend(f"Package{directive}" for directive in pkg_sign)
        tokens.extend(f"Database{directive}" for directive in db_sign)

    pkg_trust, db_trust = _trusts_all(pkg, level), _trusts_all(db, level)
    if pkg_trust and db_trust:
        tokens.append("TrustAll")
    elif pkg_trust:
        tokens.append("PackageTrustAll")
    elif db_trust:
        tokens.append("DatabaseTrustAll")
    return tokens
