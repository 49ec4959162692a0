#!/usr/bin/env python3
"""
Deposit Example

Calls the zero-argument ``deposit()`` method of a contract (for example a
WETH-style wrapper) and waits for the receipt.

Configure with environment variables or a .env file:
  ETHCLIENT_RPC_URL=http://127.0.0.1:8545
  ETHCLIENT_PRIVATE_KEY=0x...
  CONTRACT_ADDRESS=0x...
  DEPOSIT_WEI=10000000000000000

Run with: python examples/deposit.py
"""

import os
import sys
from pathlib import Path

from ethclient_sdk import EthClient, EthClientError, configure_logging

CONTRACT_ADDRESS = os.environ.get("CONTRACT_ADDRESS", "")
DEPOSIT_WEI = int(os.environ.get("DEPOSIT_WEI", str(10**16)))


def main() -> int:
    configure_logging(level="INFO")

    if not CONTRACT_ADDRESS:
        print("Set CONTRACT_ADDRESS to the contract to deposit into")
        return 1

    print("=" * 60)
    print("ethclient SDK - Deposit")
    print("=" * 60)

    try:
        with EthClient.from_env(Path(".env")) as client:
            print(f"Account:  {client.address}")
            print(f"Balance:  {client.get_my_eth_balance()} ETH")
            print(f"Chain id: {client.get_chain_id()}")
            print()

            receipt = client.invoke_contract_without_args(CONTRACT_ADDRESS, "deposit", value=DEPOSIT_WEI)

            print(f"Transaction: {receipt.tx_hash}")
            print(f"Block:       {receipt.block_number}")
            print(f"Gas used:    {receipt.gas_used}")
            print(f"Status:      {receipt.status.value}")
            print(f"Balance:     {client.get_my_eth_balance()} ETH")
            return 0 if receipt.succeeded else 2
    except EthClientError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
