#!/usr/bin/env python3
"""
Proxy wallet example - Builder Relayer SDK

Relays two calls through a Polymarket proxy wallet on Polygon, using a web3
RPC node for gas estimation and a remote builder signer for attribution.
"""
import logging
import os

from builder_relayer_sdk import (
    BuilderConfig, CancelToken, LocalSigner, RelayClient, RelayerError, RelayerTxType,
    Transaction, Web3GasEstimator
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    RPC_URL = os.environ.get("RPC_URL", "https://polygon-rpc.com")
    REMOTE_SIGNER_URL = os.environ.get("BUILDER_REMOTE_HOST")
    REMOTE_SIGNER_TOKEN = os.environ.get("BUILDER_REMOTE_TOKEN", "")
    TARGET_A = os.environ.get("TARGET_A")
    TARGET_B = os.environ.get("TARGET_B")

    if not PRIVATE_KEY or not REMOTE_SIGNER_URL:
        print("ERROR: PRIVATE_KEY and BUILDER_REMOTE_HOST environment variables are required")
        return
    if not TARGET_A or not TARGET_B:
        print("ERROR: TARGET_A and TARGET_B environment variables are required")
        return

    print("\n=== Builder Relayer SDK Proxy Example ===\n")

    signer = LocalSigner(PRIVATE_KEY, chain_id=137, gas_estimator=Web3GasEstimator(RPC_URL))
    client = RelayClient.from_network(
        "polygon",
        signer=signer,
        builder_config=BuilderConfig.remote(REMOTE_SIGNER_URL, token=REMOTE_SIGNER_TOKEN),
        relay_tx_type=RelayerTxType.PROXY,
        logger=logger,
    )
    print(f"Proxy wallet: {client.get_expected_proxy_wallet()}")

    token = CancelToken.with_timeout(600)
    try:
        response = client.execute(
            [
                Transaction(to=TARGET_A, data="0x"),
                Transaction(to=TARGET_B, data="0x"),
            ],
            metadata="proxy example",
            cancel_token=token,
        )
        print(f"Submitted {response.transaction_id}, waiting for it to be mined...")
        txn = response.wait(cancel_token=token)
        print(f"Mined in {txn.transaction_hash}")
    except RelayerError as e:
        print(f"Relay failed: {str(e)}")


if __name__ == "__main__":
    main()
