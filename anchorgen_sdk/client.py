"""
ProgramClient - runtime facade over one program schema.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from construct import Construct

from .catalog import RecordCatalog, check_discriminator_collisions
from .codec import BorshCodec
from .config import GeneratorConfig, NetworkConfig
from .event import EventParser, ParsedEvent
from .instruction import Instruction, InstructionBuilder
from .keys import Keypair, Pubkey
from .models import ProgramSchema
from .transport import Transport, get_transport


class ProgramClient:
    """
    Client for one program described by a ``ProgramSchema``.

    This client handles:
    1. Building and submitting tagged instructions
    2. Fetching and decoding the program's account records
    3. Recovering the program's events from transaction logs

    Submission goes through exactly one transport call per instruction; the
    client never retries and never caches fetched records.
    """

    def __init__(
        self,
        schema: ProgramSchema,
        transport: Transport,
        codec: Optional[BorshCodec] = None,
        namespace: Optional[str] = None,
        check_collisions: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the ProgramClient

        Args:
            schema: Program schema to build requests for
            transport: Initialized transport used for submit and fetch
            codec: Borsh codec; one bound to ``schema`` is created if omitted
            namespace: Discriminator namespace for instructions
            check_collisions: Whether to reject schemas with colliding discriminators
            logger: Optional logger instance to use for debug/info logging

        Raises:
            DiscriminatorCollisionError: If two names derive the same discriminator
        """
        self.schema = schema
        self.transport = transport
        self.codec = codec or BorshCodec(schema)
        self.namespace = namespace
        self.logger = logger or logging.getLogger(__name__)

        if check_collisions:
            check_discriminator_collisions(schema, namespace)

        self.builder = InstructionBuilder(schema, self.codec, namespace)
        self.catalog = RecordCatalog(schema, self.codec)
        self.events = EventParser(schema, self.codec)

    @classmethod
    def from_network(
        cls,
        schema: ProgramSchema,
        network: str,
        rpc_url_override: Optional[str] = None,
        config: Optional[GeneratorConfig] = None,
        **kwargs
    ) -> "ProgramClient":
        """
        Create a client for a named cluster from ``networks.json``.

        Raises:
            ValueError: If the network is not configured
        """
        config = config or GeneratorConfig.from_env()
        rpc_url = NetworkConfig.get_rpc_url(network, rpc_url_override)
        return cls(
            schema,
            get_transport(rpc_url, commitment=NetworkConfig.get_commitment(network)),
            namespace=config.instruction_namespace,
            check_collisions=config.check_collisions,
            **kwargs
        )

    @property
    def program_id(self) -> Pubkey:
        return self.schema.program_id

    def build(
        self,
        instruction: str,
        addresses: Sequence[Pubkey],
        args: Optional[Dict[str, Any]] = None,
    ) -> Instruction:
        return self.builder.build(instruction, addresses, args)

    def send(
        self,
        instruction: str,
        addresses: Sequence[Pubkey],
        args: Optional[Dict[str, Any]] = None,
        signers: Sequence[Keypair] = (),
    ) -> str:
        """
        Build an instruction and submit it once.

        Args:
            instruction: Instruction name
            addresses: One address per role, in declared order
            args: Argument bundle for non-void instructions
            signers: Keypairs signing the transaction; the first pays the fee

        Returns:
            The transaction signature reported by the transport

        Raises:
            ValueError: If the address count does not match the roles
            EncodeError: If the arguments cannot be encoded
            TransportError: If submission fails
        """
        ix = self.build(instruction, addresses, args)
        self.logger.debug(f"Submitting {instruction} to {self.program_id}")
        signature = self.transport.submit(ix, signers)
        self.logger.info(f"{instruction} submitted: {signature}")
        return signature

    def fetch(
        self,
        account: str,
        address: Pubkey,
        layout: Optional[Construct] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch and decode an account record.

        Args:
            account: Simple name of a record type referenced by an instruction
            address: Account address
            layout: Layout overriding the catalog's layout for the record body

        Returns:
            The decoded record, or None if the account does not exist

        Raises:
            KeyError: If no instruction references the record type
            TagMismatchError: If the account holds a different record type
            DecodeError: If the record body is malformed
            TransportError: If the fetch fails
        """
        entry = self.catalog.get(account)
        record = self.transport.fetch_record(address)
        if record is None:
            self.logger.debug(f"{entry.name} account {address} not found")
            return None
        return self.catalog.decode_record(entry.name, record, layout)

    def parse_events(self, log_lines: Iterable[str]) -> List[ParsedEvent]:
        return self.events.parse_logs(log_lines)
