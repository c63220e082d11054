"""Asset classification.

Maps a free-text ticker or name to a Category using an ordered rule list.
Rules are evaluated in order and the first match wins:

1. known_asset   - match against a known-asset list (when provided); a B3
                   ticker still takes its category from the ticker shape
2. crypto        - crypto ticker or coin name
3. b3_ticker     - B3 ticker pattern: "11" suffix is a REIT, 3-6 is equity
4. bdr           - BDR pattern (34/35 suffix)
5. fixed_income  - Brazilian fixed-income keywords
6. fallback      - OTHER, flagged as ambiguous
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from investfolio.categories import Category
from investfolio.known_assets import KnownAsset

MIN_INPUT_LENGTH = 2

B3_TICKER_RE = re.compile(r"^[A-Z]{4}[0-9]{1,2}$")
BDR_TICKER_RE = re.compile(r"^[A-Z]{4}(34|35)$")
EQUITY_SUFFIX_RE = re.compile(r"[3-6]$")

KNOWN_CRYPTOS = (
    "BTC", "BITCOIN", "ETH", "ETHEREUM", "SOL", "SOLANA", "ADA", "CARDANO",
    "DOT", "POLKADOT", "XRP", "RIPPLE", "DOGE", "DOGECOIN", "SHIB", "SHIBA",
    "MATIC", "POLYGON", "LTC", "LITECOIN", "LINK", "CHAINLINK", "UNI", "UNISWAP",
    "AVAX", "AVALANCHE", "ATOM", "COSMOS", "FTM", "FANTOM", "NEAR", "ALGO",
    "BNB", "BINANCE", "USDT", "TETHER", "USDC", "BUSD", "DAI", "APE", "APT",
    "ARB", "ARBITRUM", "OP", "OPTIMISM", "PEPE", "SAND", "MANA", "AXS", "SLP",
    "TRX", "TRON", "VET", "VECHAIN", "EOS", "XLM", "STELLAR", "XMR", "MONERO",
    "NEO", "IOTA", "ETC", "LUNA", "FIL", "FILECOIN", "THETA", "XTZ", "TEZOS",
    "AAVE", "MKR", "MAKER", "COMP", "COMPOUND", "SNX", "CRV", "CURVE", "SUSHI",
    "YFI", "YEARN", "1INCH", "BAT", "ENJ", "ENJIN", "CHZ", "CHILIZ",
)

FIXED_INCOME_KEYWORDS = (
    "CDB", "LCI", "LCA", "TESOURO", "SELIC", "IPCA+", "CDI", "DEBENTURE",
    "POUPANCA", "POUPANÇA",
)


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one input.

    ``ambiguous`` is set when no rule recognised the input and the category
    fell back to OTHER; callers should warn the user instead of guessing.
    """

    category: Category
    rule: str
    asset: Optional[KnownAsset] = None

    @property
    def ambiguous(self) -> bool:
        return self.rule == "fallback"

    @property
    def is_known(self) -> bool:
        return self.asset is not None


@dataclass(frozen=True)
class Rule:
    """A named predicate over normalized input.

    ``match`` returns the category when the rule applies, None otherwise.
    """

    name: str
    match: Callable[[str], Optional[Category]]


def normalize_input(text: str | None) -> str:
    return (text or "").strip().upper()


def match_crypto(ticker: str) -> Optional[Category]:
    # B3-shaped tickers only match exactly so "TRXF11" or "ENJU3" are not coins
    if B3_TICKER_RE.match(ticker):
        return Category.CRYPTO if ticker in KNOWN_CRYPTOS else None
    if any(ticker == coin or coin in ticker for coin in KNOWN_CRYPTOS):
        return Category.CRYPTO
    return None


def match_b3_ticker(ticker: str) -> Optional[Category]:
    if not B3_TICKER_RE.match(ticker):
        return None
    if ticker.endswith("11"):
        return Category.REIT
    if EQUITY_SUFFIX_RE.search(ticker):
        return Category.EQUITY
    return None


def match_bdr(ticker: str) -> Optional[Category]:
    if BDR_TICKER_RE.match(ticker):
        return Category.EQUITY
    return None


def match_fixed_income(ticker: str) -> Optional[Category]:
    if any(keyword in ticker for keyword in FIXED_INCOME_KEYWORDS):
        return Category.FIXED_INCOME
    return None


def match_fallback(ticker: str) -> Optional[Category]:
    return Category.OTHER


# Order matters: first match wins
HEURISTIC_RULES: tuple[Rule, ...] = (
    Rule("crypto", match_crypto),
    Rule("b3_ticker", match_b3_ticker),
    Rule("bdr", match_bdr),
    Rule("fixed_income", match_fixed_income),
    Rule("fallback", match_fallback),
)


def find_known_asset(
    ticker: str, known_assets: Iterable[KnownAsset]
) -> Optional[KnownAsset]:
    """Find the first known asset matching the normalized ticker.

    B3-shaped tickers only match a symbol or display name exactly, so a short
    symbol like "BTC" never captures "BTCI11". Other input also matches when
    either string contains the other.
    """
    exact_only = bool(B3_TICKER_RE.match(ticker))
    for asset in known_assets:
        for candidate in (asset.symbol, asset.display_name):
            candidate = normalize_input(candidate)
            if not candidate:
                continue
            if ticker == candidate:
                return asset
            if not exact_only and (candidate in ticker or ticker in candidate):
                return asset
    return None


def classify_detailed(
    text: str | None,
    known_assets: Optional[Sequence[KnownAsset]] = None,
    rules: Sequence[Rule] = HEURISTIC_RULES,
) -> Classification:
    """Classify input and report which rule decided it.

    Args:
        text: User-typed ticker, company name or coin name
        known_assets: Optional snapshot of known assets, consulted first
        rules: Ordered heuristic rules applied after the known-asset lookup

    Returns:
        Classification with the category, rule name and matched asset
    """
    ticker = normalize_input(text)

    if len(ticker) < MIN_INPUT_LENGTH:
        return Classification(Category.OTHER, "fallback")

    if known_assets:
        asset = find_known_asset(ticker, known_assets)
        if asset is not None:
            # B3 ticker shape decides the category even for known assets
            b3_category = match_b3_ticker(ticker)
            if b3_category is not None:
                return Classification(b3_category, "b3_ticker", asset)
            return Classification(asset.category, "known_asset", asset)

    for rule in rules:
        category = rule.match(ticker)
        if category is not None:
            return Classification(category, rule.name)

    return Classification(Category.OTHER, "fallback")


def classify(
    text: str | None, known_assets: Optional[Sequence[KnownAsset]] = None
) -> Category:
    """Classify a ticker or name into a Category. Pure and deterministic."""
    return classify_detailed(text, known_assets).category
