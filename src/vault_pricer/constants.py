"""Chain and pricing constants."""

MAINNET_CHAIN_ID = 1
OPTIMISM_CHAIN_ID = 10
FANTOM_CHAIN_ID = 250
BASE_CHAIN_ID = 8453
ARBITRUM_CHAIN_ID = 42161

# Yearn lens oracle (getPriceUsdcRecommended), one deployment per chain
LENS_ADDRESSES: dict[int, str] = {
    MAINNET_CHAIN_ID: "0x83d95e0D5f402511dB06817Aff3f9eA88224B030",
    OPTIMISM_CHAIN_ID: "0xB082d9f4734c535D9d80536F7E87a6f4F471bF65",
    FANTOM_CHAIN_ID: "0x57AA88A0810dfe3f9b71a9b179Dd8bF5F956C46A",
    BASE_CHAIN_ID: "0xE0F3D78DB7bC111996864A32d22AB0F59Ca5Fa86",
    ARBITRUM_CHAIN_ID: "0x043518AB266485dC085a1DB095B8d9C2Fc78E9b9",
}

# Job kind consumed by the price loader
LOAD_PRICE_JOB = "load.price"

# Cache TTLs in seconds
RESOLVE_PRICE_TTL = 30
YDAEMON_PRICES_TTL = 60
SPORK_PRICE_TTL = 60
EORACLE_DECIMALS_TTL = 30 * 24 * 60 * 60  # feed decimals never change
BLOCK_TIME_TTL = 24 * 60 * 60
TOKEN_DECIMALS_TTL = 30 * 24 * 60 * 60

# Entries kept per TTL class before least recently used ones are evicted
CACHE_MAXSIZE = 10_000

SPORK_PRICE_DECIMALS = 18

# HTTP statuses worth retrying
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

DEFAULT_LATEST_CASCADE = ["eoracle", "ydaemon"]
DEFAULT_HISTORICAL_CASCADE = ["database", "eoracle", "lens", "yprice"]
