#!/usr/bin/env python3
"""
Example of generating a typed client module and calling it.

Equivalent to:

    anchorgen generate examples/counter.json -o examples/counter_client.py
"""
import importlib.util
import pathlib

from anchorgen_sdk import Keypair, ProgramSchema, Pubkey, write_client
from anchorgen_sdk.transport import get_stub_transport

HERE = pathlib.Path(__file__).parent


def main():
    schema = ProgramSchema.from_file(HERE / "counter.json")
    path = write_client(schema, HERE / "counter_client.py")
    print(f"Generated {path}")

    spec = importlib.util.spec_from_file_location("counter_client", path)
    counter_client = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(counter_client)

    authority = Keypair.generate()
    counter = Keypair.generate()
    transport = get_stub_transport()
    transport.initialize("stub://counter")
    client = counter_client.ProgramClient(transport)

    signature = client.send_initialize(
        counter.pubkey(), authority.pubkey(), Pubkey.default(), {"start": 0}, [authority, counter]
    )
    print(f"initialize submitted: {signature}")
    print(f"increment builds: {counter_client.increment(counter.pubkey(), authority.pubkey())}")
    print(f"Counter account exists: {client.get_counter(counter.pubkey()) is not None}")


if __name__ == "__main__":
    main()
