"""
Configuration for the anchorgen SDK.

``NetworkConfig`` serves cluster endpoints from the bundled
``networks.json``; ``GeneratorConfig`` holds the knobs shared by the code
generator and the runtime client.
"""
import importlib.resources
import json
import keyword
import logging
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator

from .discriminator import INSTRUCTION_NAMESPACE

logger = logging.getLogger(__name__)

ENV_PREFIX = "ANCHORGEN_"

DEFAULT_COMMITMENT = "confirmed"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class NetworkConfig:
    """Cluster endpoints and program addresses by network name"""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        if cls._networks_cache is None:
            text = importlib.resources.files("anchorgen_sdk").joinpath("networks.json").read_text(encoding="utf-8")
            cls._networks_cache = json.loads(text)
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        """
        Raises:
            ValueError: If the network is not configured
        """
        networks = cls.load_networks()
        if network not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{network}'. Available networks: {available}")
        return networks[network]

    @classmethod
    def get_rpc_url(cls, network: str, override: Optional[str] = None) -> str:
        """
        Resolve the RPC endpoint for a network.

        Precedence: ``override``, then ``<NETWORK>_RPC_URL``, then
        ``ANCHORGEN_RPC_URL``, then the bundled configuration.
        """
        if override:
            return override
        env_var = f"{network.upper().replace('-', '_')}_RPC_URL"
        env_url = os.environ.get(env_var) or os.environ.get(f"{ENV_PREFIX}RPC_URL")
        if env_url:
            logger.debug(f"Using RPC URL from environment for {network}")
            return env_url
        return cls.get_network(network)["rpc"]

    @classmethod
    def get_commitment(cls, network: str) -> str:
        return cls.get_network(network).get("commitment", DEFAULT_COMMITMENT)

    @classmethod
    def get_program_address(cls, network: str, program: str) -> Optional[str]:
        return cls.get_network(network).get("programs", {}).get(program)

    @classmethod
    def get_explorer_url(cls, network: str, signature: str) -> Optional[str]:
        template = cls.get_network(network).get("explorer")
        return template.format(signature=signature) if template else None


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got: {raw!r}")


class GeneratorConfig(BaseModel):
    """
    Settings shared by generated clients and ``ProgramClient``.

    Attributes:
        instruction_namespace: Discriminator namespace for instructions;
            set to "global" to target deployed Anchor programs
        check_collisions: Whether to reject schemas with colliding discriminators
        client_class_name: Name of the generated facade class
        header_comment: Extra comment line placed at the top of generated code
    """
    instruction_namespace: str = INSTRUCTION_NAMESPACE
    check_collisions: bool = True
    client_class_name: str = "ProgramClient"
    header_comment: Optional[str] = None

    @field_validator("instruction_namespace")
    @classmethod
    def _validate_namespace(cls, value: str) -> str:
        if not value or ":" in value:
            raise ValueError(f"Instruction namespace must be non-empty and contain no ':', got: {value!r}")
        return value

    @field_validator("client_class_name")
    @classmethod
    def _validate_class_name(cls, value: str) -> str:
        if not value.isidentifier() or keyword.iskeyword(value):
            raise ValueError(f"Client class name must be a Python identifier, got: {value!r}")
        return value

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """
        Build a config from ``ANCHORGEN_*`` environment variables.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        values: Dict[str, Any] = {}
        namespace = os.environ.get(f"{ENV_PREFIX}INSTRUCTION_NAMESPACE")
        if namespace is not None:
            values["instruction_namespace"] = namespace
        values["check_collisions"] = _env_flag(f"{ENV_PREFIX}CHECK_COLLISIONS", True)
        class_name = os.environ.get(f"{ENV_PREFIX}CLIENT_CLASS_NAME")
        if class_name is not None:
            values["client_class_name"] = class_name
        header = os.environ.get(f"{ENV_PREFIX}HEADER_COMMENT")
        if header is not None:
            values["header_comment"] = header
        return cls(**values)
