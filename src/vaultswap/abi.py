"""Minimal contract ABIs used by the swap pipeline."""

ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)

V3_FACTORY_ABI = [
    {
        "inputs": [
            {"name": "tokenA", "type": "address"},
            {"name": "tokenB", "type": "address"},
            {"name": "fee", "type": "uint24"},
        ],
        "name": "getPool",
        "outputs": [{"name": "pool", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
]

V3_POOL_ABI = [
    {
        "inputs": [],
        "name": "token0",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "token1",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "fee",
        "outputs": [{"name": "", "type": "uint24"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "liquidity",
        "outputs": [{"name": "", "type": "uint128"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "slot0",
        "outputs": [
            {"name": "sqrtPriceX96", "type": "uint160"},
            {"name": "tick", "type": "int24"},
            {"name": "observationIndex", "type": "uint16"},
            {"name": "observationCardinality", "type": "uint16"},
            {"name": "observationCardinalityNext", "type": "uint16"},
            {"name": "feeProtocol", "type": "uint8"},
            {"name": "unlocked", "type": "bool"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

# SwapRouter02: the single-hop params structs carry no deadline, it goes
# through multicall(uint256 deadline, bytes[] data) instead
SINGLE_SWAP_PARAMS_TYPE = "(address,address,uint24,address,uint256,uint256,uint160)"
EXACT_INPUT_SINGLE_SIGNATURE = f"exactInputSingle({SINGLE_SWAP_PARAMS_TYPE})"
EXACT_OUTPUT_SINGLE_SIGNATURE = f"exactOutputSingle({SINGLE_SWAP_PARAMS_TYPE})"
MULTICALL_SIGNATURE = "multicall(uint256,bytes[])"


def encode_approve(spender: str, amount: int) -> str:
    """Encode ERC-20 approve(spender, amount) call data as hex."""
    spender_padded = spender.lower().replace("0x", "").zfill(64)
    amount_hex = hex(amount)[2:].zfill(64)
    return f"{ERC20_APPROVE_SELECTOR}{spender_padded}{amount_hex}"
