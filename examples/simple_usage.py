#!/usr/bin/env python3
"""
Simple example of using the anchorgen SDK against the in-process stub transport.
"""
import logging
import pathlib

from anchorgen_sdk import (
    EventEmitter,
    Keypair,
    ProgramClient,
    ProgramLog,
    ProgramSchema,
    Pubkey,
    account_discriminator,
)
from anchorgen_sdk.codec import encode
from anchorgen_sdk.transport import get_stub_transport

SCHEMA_PATH = pathlib.Path(__file__).with_name("counter.json")


def main():
    """
    Demonstrate basic usage of the ProgramClient.

    This example shows how to:
    1. Load a program schema
    2. Submit an instruction through a transport
    3. Fetch and decode an account record
    4. Emit an event and parse it back out of the logs
    """
    logging.basicConfig(level=logging.INFO)

    schema = ProgramSchema.from_file(SCHEMA_PATH)
    transport = get_stub_transport()
    transport.initialize("stub://counter")
    client = ProgramClient(schema, transport)

    authority = Keypair.generate()
    counter = Keypair.generate()

    signature = client.send(
        "initialize",
        [counter.pubkey(), authority.pubkey(), Pubkey.default()],
        {"start": 1},
        signers=[authority, counter],
    )
    print(f"initialize submitted: {signature}")

    # The stub keeps whatever account data we give it
    layout = client.catalog.layout("Counter")
    body = encode(layout, {"authority": authority.pubkey(), "count": 1, "bump": 255})
    transport.set_account(counter.pubkey(), account_discriminator("Counter") + body, owner=schema.address)

    record = client.fetch("Counter", counter.pubkey())
    print(f"Counter: count={record['count']} authority={record['authority']}")

    channel = ProgramLog()
    emitter = EventEmitter(channel, schema=schema)
    emitter.emit(schema.get_event("CountChanged"), {"old": 1, "new": 2})

    logs = [f"Program {schema.address} invoke [1]"] + channel.lines + [f"Program {schema.address} success"]
    for event in client.parse_events(logs):
        print(f"Event {event.name}: {event.data}")


if __name__ == "__main__":
    main()
