"""
Fee Schedule - the enumerated pricing configuration handed to the engine.

Holds the liquidity pool table, the provider fee structures, the multi-hop
route and the flat pricing constants. Tables are loaded from CSV with pandas;
any missing file falls back to the built-in defaults below.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pandas as pd

from .errors import ScheduleError, UnknownMethod, UnknownPool, UnknownToken
from .models import Pool, ProviderFeeStructure, RouteHop, TokenInfo

logger = logging.getLogger(__name__)

AUTO = "auto"
OWN_METHOD = "remit-ai"

DEFAULT_POOLS = (
    Pool(
        pool_id="aerodrome",
        name="Aerodrome KRWQ/USDC",
        network="Base",
        tvl=5_000_000,
        fee_fraction=0.003,  # 0.3%
        slippage_fraction=0.001,  # 0.1%
        aliases=("aerodrome-krwq-usdc",),
    ),
    Pool(
        pool_id="frax",
        name="Frax KRWQ/frxUSD",
        network="Fraxtal",
        tvl=2_000_000,
        fee_fraction=0.0025,  # 0.25%
        slippage_fraction=0.0015,  # 0.15%
        aliases=("frax-krwq-frxusd",),
    ),
)

DEFAULT_PROVIDERS = (
    ProviderFeeStructure(OWN_METHOD, "REMIT-AI (KRWQ)", 0.5, 0.003, "< 1 minute"),
    ProviderFeeStructure("bank", "BANK", 25.0, 0.05, "2-5 business days"),
    ProviderFeeStructure("western-union", "WESTERN-UNION", 10.0, 0.04, "1-3 business days"),
    ProviderFeeStructure("wise", "WISE", 5.0, 0.01, "1-2 business days"),
)

DEFAULT_ROUTE_HOPS = (
    RouteHop(1, "USD/USDC", "frxUSD", "Frax Swap", 0.001),
    RouteHop(2, "frxUSD", "KRWQ", "Aerodrome/Fraxtal", 0.0025),
)

DEFAULT_TOKENS = (
    TokenInfo(
        symbol="frxUSD",
        name="Frax USD",
        peg="1 frxUSD = 1 USD",
        backing="Fully backed by BlackRock BUIDL, Superstate USTB, and other RWAs",
        networks=("Ethereum", "Fraxtal", "Base", "Arbitrum", "Polygon"),
        website="https://frax.finance",
    ),
    TokenInfo(
        symbol="KRWQ",
        name="KRWQ Korean Won Stablecoin",
        peg="1 KRWQ = 1 KRW (Korean Won)",
        backing="Issued by IQ and Frax, pegged 1:1 to the Korean Won",
        networks=("Base", "Fraxtal"),
        website="https://frax.finance",
    ),
)

# Method aliases accepted by calculate_conversion
METHOD_ALIASES = {"own": OWN_METHOD, "remitai": OWN_METHOD}

POOL_COLUMNS = ['pool_id', 'name', 'network', 'tvl', 'fee_fraction', 'slippage_fraction']
PROVIDER_COLUMNS = ['method', 'display_name', 'transfer_fee', 'markup_fraction', 'delivery_time']
HOP_COLUMNS = ['step', 'from_asset', 'to_asset', 'protocol', 'fee_fraction']


@dataclass(frozen=True)
class FeeSchedule:
    """
    Read-only pricing configuration.

    Constants:
        gas_usd: flat L2 gas cost added to every swap
        swap_fee_fraction: DEX fee used by transaction simulation
        retail_rate_factor: worse retail FX rate applied to traditional baselines
        baseline_method: provider used as the traditional comparison
    """
    pools: tuple[Pool, ...] = DEFAULT_POOLS
    providers: tuple[ProviderFeeStructure, ...] = DEFAULT_PROVIDERS
    route_hops: tuple[RouteHop, ...] = DEFAULT_ROUTE_HOPS
    tokens: tuple[TokenInfo, ...] = DEFAULT_TOKENS

    gas_usd: float = 0.5
    swap_fee_fraction: float = 0.003
    retail_rate_factor: float = 0.98
    own_method: str = OWN_METHOD
    baseline_method: str = "bank"
    baseline_time_saved: str = "2-5 days"
    default_route: str = "USD → USDC → Aerodrome → KRWQ"
    settlement_network: str = "Base (Coinbase L2)"
    settlement_time: str = "< 30 seconds"
    next_steps: tuple[str, ...] = field(default=(
        "Connect wallet to confirm transaction",
        "Approve USDC spending",
        "Execute swap on Aerodrome",
        "KRWQ will be delivered to recipient address",
    ))

    def __post_init__(self):
        if not self.pools:
            raise ScheduleError("Fee schedule needs at least one liquidity pool")
        if not self.providers:
            raise ScheduleError("Fee schedule needs at least one provider")
        keys = [AUTO]
        for pool in self.pools:
            keys.extend((pool.pool_id,) + pool.aliases)
            if pool.fee_fraction < 0 or pool.slippage_fraction < 0:
                raise ScheduleError(f"Pool {pool.pool_id} has a negative fee or slippage")
        if len(keys) != len(set(keys)):
            raise ScheduleError("Pool ids and aliases must be unique and must not be 'auto'")
        methods = [p.method for p in self.providers]
        if len(methods) != len(set(methods)):
            raise ScheduleError("Provider methods must be unique")
        for provider in self.providers:
            if provider.transfer_fee < 0 or not 0 <= provider.markup_fraction < 1:
                raise ScheduleError(f"Provider {provider.method} has an invalid fee structure")
        if self.own_method not in methods:
            raise ScheduleError(f"Own method {self.own_method!r} missing from provider table")
        if self.baseline_method not in methods:
            raise ScheduleError(f"Baseline method {self.baseline_method!r} missing from provider table")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_pool(self, key: str) -> Pool:
        for pool in self.pools:
            if pool.matches(key):
                return pool
        raise UnknownPool(
            f"Unknown pool {key!r}. Choose one of: {', '.join(self.pool_keys())}"
        )

    def pool_keys(self) -> list[str]:
        return [AUTO] + [p.pool_id for p in self.pools]

    def get_provider(self, method: str) -> ProviderFeeStructure:
        method = METHOD_ALIASES.get(method, method)
        for provider in self.providers:
            if provider.method == method:
                return provider
        raise UnknownMethod(
            f"Unknown transfer method {method!r}. Choose one of: "
            f"{', '.join(p.method for p in self.providers)}"
        )

    def get_token(self, symbol: str) -> TokenInfo:
        for token in self.tokens:
            if token.symbol.lower() == str(symbol).lower():
                return token
        raise UnknownToken(f"No token info for {symbol!r}")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def default(cls) -> 'FeeSchedule':
        return cls()

    @classmethod
    def load(cls, settings=None) -> 'FeeSchedule':
        """Load the schedule tables named by the settings."""
        if settings is None:
            from ..config.settings import get_settings
            settings = get_settings()

        pools = _load_pools(settings.pools_csv)
        providers = _load_providers(settings.providers_csv)
        hops = _load_route_hops(settings.route_hops_csv)

        return cls(
            pools=pools if pools is not None else DEFAULT_POOLS,
            providers=providers if providers is not None else DEFAULT_PROVIDERS,
            route_hops=hops if hops is not None else DEFAULT_ROUTE_HOPS,
        )


def _read_table(path: Optional[Path], columns: list[str]) -> Optional[pd.DataFrame]:
    if path is None or not Path(path).exists():
        logger.info("Table %s not found, using built-in defaults", path)
        return None

    df = pd.read_csv(path, dtype=str).fillna('')
    df.columns = [c.strip() for c in df.columns]
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ScheduleError(f"{Path(path).name} is missing columns: {', '.join(missing)}")
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    df = df[df[columns[0]] != '']
    logger.info("Loaded %d rows from %s", len(df), Path(path).name)
    return df


def _to_float(value: str, column: str, path: Path) -> float:
    try:
        return float(value)
    except ValueError:
        raise ScheduleError(f"{Path(path).name}: column {column} has non-numeric value {value!r}")


def _load_pools(path: Optional[Path]) -> Optional[tuple[Pool, ...]]:
    df = _read_table(path, POOL_COLUMNS)
    if df is None:
        return None
    pools = []
    for _, row in df.iterrows():
        aliases = row.get('aliases', '')
        pools.append(Pool(
            pool_id=row['pool_id'],
            name=row['name'],
            network=row['network'],
            tvl=_to_float(row['tvl'], 'tvl', path),
            fee_fraction=_to_float(row['fee_fraction'], 'fee_fraction', path),
            slippage_fraction=_to_float(row['slippage_fraction'], 'slippage_fraction', path),
            aliases=tuple(a.strip() for a in aliases.split('|') if a.strip()),
        ))
    return tuple(pools)


def _load_providers(path: Optional[Path]) -> Optional[tuple[ProviderFeeStructure, ...]]:
    df = _read_table(path, PROVIDER_COLUMNS)
    if df is None:
        return None
    return tuple(
        ProviderFeeStructure(
            method=row['method'],
            display_name=row['display_name'] or row['method'].upper(),
            transfer_fee=_to_float(row['transfer_fee'], 'transfer_fee', path),
            markup_fraction=_to_float(row['markup_fraction'], 'markup_fraction', path),
            delivery_time=row['delivery_time'],
        )
        for _, row in df.iterrows()
    )


def _load_route_hops(path: Optional[Path]) -> Optional[tuple[RouteHop, ...]]:
    df = _read_table(path, HOP_COLUMNS)
    if df is None:
        return None
    hops = [
        RouteHop(
            step=int(_to_float(row['step'], 'step', path)),
            from_asset=row['from_asset'],
            to_asset=row['to_asset'],
            protocol=row['protocol'],
            fee_fraction=_to_float(row['fee_fraction'], 'fee_fraction', path),
        )
        for _, row in df.iterrows()
    ]
    hops.sort(key=lambda h: h.step)
    return tuple(hops)
