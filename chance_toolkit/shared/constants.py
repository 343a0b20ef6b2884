"""All constants for the project"""

import os

from dotenv import load_dotenv

load_dotenv()


class HashConstants:
    """Domain separation prefixes and fixed widths used by the draw engine"""

    LEAF_PREFIX = b"\x00"
    NODE_PREFIX = b"\x01"

    HASH_SIZE = 32
    UINT128_SIZE = 16
    UINT128_MAX = 2**128 - 1

    ZERO_HASH = b"\x00" * HASH_SIZE


class DrandConstants:
    """drand network constants"""

    # Default chain (quicknet, unchained BLS on G1, 3s period)
    CHAIN_HASH = os.getenv(
        "CHANCE_DRAND_CHAIN_HASH",
        "52db9ba70e0cc0f6eaf7803dd07447a1f5477735fd3f661792ba94600c84e971",
    )

    RELAYS = [
        ("https://api.drand.sh", "drand.sh"),
        ("https://api2.drand.sh", "drand.sh (2)"),
        ("https://api3.drand.sh", "drand.sh (3)"),
        ("https://drand.cloudflare.com", "Cloudflare"),
    ]


class GlobalConstants:
    """Global class constants"""

    INJ_DECIMALS = 18
    INJ_DENOM = "inj"

    DAY = 86400
    DAYS_PER_YEAR = 365
    SECONDS_PER_YEAR = DAYS_PER_YEAR * DAY

    HTTP_TIMEOUT = float(os.getenv("CHANCE_HTTP_TIMEOUT", "15"))
    HTTP_CONNECT_TIMEOUT = float(os.getenv("CHANCE_HTTP_CONNECT_TIMEOUT", "5"))
    USER_AGENT = os.getenv("CHANCE_HTTP_UA", "chance-toolkit/1.x")

    ENDPOINTS_FILE = os.getenv("CHANCE_ENDPOINTS_FILE", "endpoints.json")
