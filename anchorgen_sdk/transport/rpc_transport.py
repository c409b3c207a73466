"""
JSON-RPC transport implementation.

Talks to a Solana-compatible cluster over HTTP using a ``requests`` session
with urllib3 retries for transient server errors.
"""
import base64
import itertools
import logging
import urllib.parse
from typing import Any, Dict, List, Optional, Sequence, Type, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .._rate_limited_log import rate_limited_log
from ..instruction import Instruction
from ..keys import Keypair, Pubkey
from ..models import AccountRecord
from ._transaction import compile_transaction
from .exceptions import (
    FetchError,
    RpcResponseError,
    SubmitError,
    TransportConnectionError,
    TransportTimeoutError,
)
from .transport import Transport

logger = logging.getLogger(__name__)

LOCAL_HOSTS = ("localhost", "127.0.0.1")


class RpcTransport(Transport):
    """
    Transport backed by a cluster's JSON-RPC endpoint.

    To use this transport you'll need:
    - An RPC endpoint URL (https, or http for localhost)
    - Signers for every signer role of the instructions you submit
    """

    def __init__(
        self,
        commitment: str = "confirmed",
        skip_preflight: bool = False,
        retry_count: int = 3,
        timeout: int = 30,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the RPC transport

        Args:
            commitment: Commitment level for reads and preflight checks
            skip_preflight: Whether the node should skip transaction simulation
            retry_count: Number of retries for 5xx responses and connection errors
            timeout: Timeout for HTTP requests in seconds
            logger: Optional logger instance to use for debug/info logging
        """
        self.commitment = commitment
        self.skip_preflight = skip_preflight
        self.retry_count = retry_count
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self.rpc_url: Optional[str] = None
        self.session: Optional[requests.Session] = None
        self._ids = itertools.count(1)

    def is_available(self) -> bool:
        return True

    def initialize(self, rpc_url: str) -> None:
        """
        Validate the endpoint and set up the HTTP session.

        Raises:
            ValueError: If the URL doesn't use https (unless it's localhost/127.0.0.1)
        """
        parsed = urllib.parse.urlparse(rpc_url)
        host = parsed.netloc.split(':')[0] if parsed.netloc else ''
        if parsed.scheme != 'https' and host not in LOCAL_HOSTS:
            raise ValueError(f"rpc_url must use https:// for security (got: {parsed.scheme}://)")

        self.rpc_url = rpc_url
        self.session = requests.Session()
        retries = Retry(
            total=self.retry_count,
            backoff_factor=0.5,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["POST"],
            raise_on_status=False,
            connect=self.retry_count,
            read=self.retry_count,
            other=self.retry_count
        )
        self.session.mount("http://", HTTPAdapter(max_retries=retries))
        self.session.mount("https://", HTTPAdapter(max_retries=retries))
        self.logger.debug(f"Initialized RPC transport for {rpc_url}")

    def _request(self, method: str, params: List[Any], error_cls: Type[RpcResponseError]) -> Any:
        """
        Perform one JSON-RPC call and return its ``result``.

        Raises:
            TransportConnectionError: If the transport is not initialized or unreachable
            TransportTimeoutError: If the request times out
            error_cls: For HTTP errors, malformed responses and JSON-RPC errors
        """
        if self.session is None or self.rpc_url is None:
            raise TransportConnectionError("RPC transport not initialized")

        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        self.logger.debug(f"RPC request: {method}")
        try:
            response = self.session.post(self.rpc_url, json=payload, timeout=self.timeout)
            response.raise_for_status()

            content_type = response.headers.get('Content-Type', '')
            if 'application/json' not in content_type:
                rate_limited_log(
                    f"Unexpected Content-Type from {self.rpc_url}: {content_type} (expected application/json)",
                    logger_instance=self.logger,
                )
            body = response.json()
        except requests.Timeout as e:
            self.logger.error(f"RPC {method} timed out: {e}")
            raise TransportTimeoutError(f"RPC {method} timed out: {str(e)}")
        except requests.ConnectionError as e:
            self.logger.error(f"RPC {method} connection failed: {e}")
            raise TransportConnectionError(f"Failed to reach {self.rpc_url}: {str(e)}")
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            self.logger.error(f"RPC {method} HTTP error: {e}")
            raise error_cls(f"RPC {method} failed with HTTP status {status}", code=status)
        except ValueError as e:
            self.logger.error(f"Invalid JSON response for {method}: {e}")
            raise error_cls(f"Invalid JSON response for {method}: {str(e)}")

        if not isinstance(body, dict):
            raise error_cls(f"Malformed JSON-RPC response for {method}: {body!r}")
        error = body.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            raise error_cls(f"RPC {method} failed: {message}", code=code)
        return body.get("result")

    def get_latest_blockhash(self) -> str:
        result = self._request("getLatestBlockhash", [{"commitment": self.commitment}], SubmitError)
        try:
            blockhash = result["value"]["blockhash"]
        except (KeyError, TypeError) as e:
            raise SubmitError(f"Malformed getLatestBlockhash result: {result!r}") from e
        if not isinstance(blockhash, str):
            raise SubmitError(f"Malformed getLatestBlockhash result: {result!r}")
        return blockhash

    def submit(self, instruction: Instruction, signers: Sequence[Keypair]) -> str:
        """
        Sign and send a single-instruction transaction.

        Returns:
            The transaction signature reported by the node

        Raises:
            SubmitError: If signers are missing or the node rejects the transaction
            TransportError: For connection-level failures
        """
        blockhash = self.get_latest_blockhash()
        tx = compile_transaction(instruction, signers, blockhash)
        encoded = base64.b64encode(bytes(tx)).decode("ascii")
        config: Dict[str, Any] = {
            "encoding": "base64",
            "skipPreflight": self.skip_preflight,
            "preflightCommitment": self.commitment,
        }
        signature = self._request("sendTransaction", [encoded, config], SubmitError)
        self.logger.info(f"Transaction sent: {signature}")
        return signature

    def fetch_record(self, address: Union[Pubkey, str]) -> Optional[AccountRecord]:
        """
        Fetch an account with base64 data encoding.

        Returns:
            The account record, or None if the account does not exist
        """
        config = {"encoding": "base64", "commitment": self.commitment}
        result = self._request("getAccountInfo", [str(Pubkey.coerce(address)), config], FetchError)
        value = result.get("value") if isinstance(result, dict) else None
        if value is None:
            self.logger.debug(f"No account at {address}")
            return None
        try:
            return AccountRecord.from_rpc(value)
        except ValueError as e:
            raise FetchError(f"Malformed account data for {address}: {str(e)}") from e

    def close(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None
