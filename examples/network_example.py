#!/usr/bin/env python3
"""
Example of using ProgramClient with network configuration.
"""
import json
import os
import pathlib

from anchorgen_sdk import Keypair, NetworkConfig, ProgramClient, ProgramSchema
from anchorgen_sdk.transport import TransportError

SCHEMA_PATH = pathlib.Path(__file__).with_name("counter.json")


def main():
    """
    Submit ``increment`` to a configured cluster.

    Requires KEYPAIR_PATH (a Solana CLI keypair file) and COUNTER_ADDRESS.
    The RPC endpoint can be overridden with ANCHORGEN_RPC_URL.
    """
    keypair_path = os.environ.get("KEYPAIR_PATH")
    counter_address = os.environ.get("COUNTER_ADDRESS")
    network = os.environ.get("NETWORK", "devnet")

    if not keypair_path or not counter_address:
        print("ERROR: KEYPAIR_PATH and COUNTER_ADDRESS environment variables are required")
        return

    print("Available networks:")
    for network_name in NetworkConfig.load_networks():
        print(f"  - {network_name}")
    print()

    with open(keypair_path, encoding="utf-8") as f:
        authority = Keypair.from_bytes(bytes(json.load(f)))

    schema = ProgramSchema.from_file(SCHEMA_PATH)
    client = ProgramClient.from_network(schema, network)

    try:
        signature = client.send("increment", [counter_address, authority.pubkey()], signers=[authority])
    except TransportError as e:
        print(f"Submission failed: {e}")
        return
    finally:
        client.transport.close()

    print(f"Transaction signature: {signature}")
    explorer = NetworkConfig.get_explorer_url(network, signature)
    if explorer:
        print(f"Explorer: {explorer}")


if __name__ == "__main__":
    main()
