# Token mints
SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
DAO_TOKEN_MINT = "AbD84YXFFGSDiJ8hQtNm8cdKyTBB4o3PGrEjLJ9gdaos"

# Assets a position may be closed into
EXIT_TARGETS = {
    "USDC": USDC_MINT,
    "SOL": SOL_MINT,
}

# Safe strategy allow-list
SAFE_TOKENS = (SOL_MINT, USDC_MINT)

LAMPORTS_PER_SOL = 1_000_000_000
PUMP_TOKEN_DECIMALS = 6
