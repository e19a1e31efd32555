#!/usr/bin/env python3
"""
Simple example of using the Builder Relayer SDK.
"""
import os

from builder_relayer_sdk import (
    CancelToken, LocalSigner, NetworkConfig, RelayClient, RelayerError, Transaction,
    builder_config_from_env
)

# ERC-20 approve(spender, MAX_UINT256)
APPROVE_SELECTOR = "0x095ea7b3"
MAX_UINT256_WORD = "f" * 64


def main():
    """
    Demonstrate basic usage of the RelayClient.

    This example shows how to:
    1. Initialize the client from environment variables
    2. Deploy the Safe if needed
    3. Relay an ERC-20 approval and wait for it to be mined
    """
    # Read configuration from environment
    NETWORK = os.environ.get("NETWORK", "amoy")
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    TOKEN_ADDRESS = os.environ.get("TOKEN_ADDRESS")
    SPENDER_ADDRESS = os.environ.get("SPENDER_ADDRESS")

    # Verify configuration
    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    if not TOKEN_ADDRESS or not SPENDER_ADDRESS:
        print("ERROR: TOKEN_ADDRESS and SPENDER_ADDRESS environment variables are required")
        return

    builder_config = builder_config_from_env()
    if builder_config is None:
        print("ERROR: set BUILDER_API_KEY, BUILDER_SECRET and BUILDER_PASS_PHRASE (or BUILDER_REMOTE_HOST)")
        return

    client = RelayClient.from_network(
        NETWORK,
        signer=LocalSigner(PRIVATE_KEY, chain_id=NetworkConfig.get_chain_id(NETWORK)),
        builder_config=builder_config,
    )

    safe_address = client.get_expected_safe()
    print(f"Signer: {client.signer.address}")
    print(f"Safe:   {safe_address}")

    token = CancelToken.with_timeout(300)
    try:
        if not client.get_deployed(safe_address, cancel_token=token):
            print("Deploying Safe...")
            deployed = client.deploy(cancel_token=token).wait(cancel_token=token)
            print(f"Safe deployed in {deployed.transaction_hash}")

        approve_data = APPROVE_SELECTOR + SPENDER_ADDRESS[2:].lower().rjust(64, "0") + MAX_UINT256_WORD
        response = client.execute(
            [Transaction(to=TOKEN_ADDRESS, data=approve_data, value="0")],
            metadata="approve",
            cancel_token=token,
        )
        print(f"Submitted transaction {response.transaction_id} ({response.state})")

        txn = response.wait(cancel_token=token)
        print("Transaction mined!")
        print(f"Transaction hash: {txn.transaction_hash}")
        print(f"State: {txn.state}")

    except RelayerError as e:
        print(f"Error relaying transaction: {str(e)}")


if __name__ == "__main__":
    main()
