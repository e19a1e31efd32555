"""
RelayClient - Main client for the builder relayer.
"""
import logging
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Union

from .builder import (
    build_proxy_transaction_request, build_safe_create_transaction_request,
    build_safe_transaction_request, to_proxy_transactions, to_safe_transactions
)
from .builder_auth import BuilderConfig
from .cancellation import CancelToken, ensure_token
from .config import (
    GET_DEPLOYED_ENDPOINT, GET_NONCE_ENDPOINT, GET_RELAY_PAYLOAD_ENDPOINT,
    GET_TRANSACTION_ENDPOINT, GET_TRANSACTIONS_ENDPOINT, SUBMIT_TRANSACTION_ENDPOINT,
    NetworkConfig, get_contract_config, is_proxy_contract_config_valid, is_safe_contract_config_valid
)
from .derive import derive_proxy_wallet_address, derive_safe_address
from .encoder import encode_proxy_transaction_data
from .exceptions import (
    ConfigUnsupportedError, DecodeError, InvalidArgumentError, InvalidCredentialsError,
    MissingCapabilityError, SafeAlreadyDeployedError, SafeNotDeployedError,
    TransactionFailedError, TransactionTimeoutError
)
from .models import (
    GetDeployedResponse, NoncePayload, ProxyTransactionArgs, RelayerTransaction,
    RelayerTransactionResponse, RelayerTransactionState, RelayerTxType, RelayPayload,
    SafeCreateTransactionArgs, SafeTransactionArgs, Transaction, TransactionRequest,
    TransactionType
)
from .transport import HTTPClient
from .utils import ZERO_ADDRESS

DEFAULT_MAX_POLLS = 10
DEFAULT_POLL_FREQUENCY = 2.0
MIN_POLL_FREQUENCY = 1.0
WAIT_MAX_POLLS = 100

StateLike = Union[RelayerTransactionState, str]


def _state_value(state: StateLike) -> str:
    return state.value if isinstance(state, RelayerTransactionState) else str(state)


def _type_value(signer_type: Union[TransactionType, str]) -> str:
    return signer_type.value if isinstance(signer_type, TransactionType) else str(signer_type)


def _validate_relayer_url(url: str) -> str:
    parsed = urllib.parse.urlparse(url)
    host = parsed.hostname or ""
    is_local = host in ("localhost", "127.0.0.1")
    if parsed.scheme != "https" and not (is_local and parsed.scheme == "http"):
        raise InvalidArgumentError(
            f"must use https:// for security (got: {parsed.scheme}://)", field="relayer_url"
        )
    return url.rstrip("/")


@dataclass
class ClientRelayerTransactionResponse:
    """Handle on a submitted transaction."""
    transaction_id: str
    state: str
    transaction_hash: str
    client: "RelayClient" = field(repr=False, compare=False)

    def get_transaction(self, cancel_token: Optional[CancelToken] = None) -> List[RelayerTransaction]:
        return self.client.get_transaction(self.transaction_id, cancel_token=cancel_token)

    def wait(self, cancel_token: Optional[CancelToken] = None) -> RelayerTransaction:
        """
        Poll until the transaction is mined or confirmed.

        Raises:
            TransactionFailedError: If it reaches STATE_FAILED
            TransactionTimeoutError: If it does not settle within 100 polls
        """
        return self.client.poll_until_state(
            self.transaction_id,
            [RelayerTransactionState.STATE_MINED, RelayerTransactionState.STATE_CONFIRMED],
            fail_state=RelayerTransactionState.STATE_FAILED,
            max_polls=WAIT_MAX_POLLS,
            poll_frequency=0,
            cancel_token=cancel_token,
        )


class RelayClient:
    """
    Client for submitting gasless transactions through the builder relayer.

    This client handles:
    1. Reading nonces, relay payloads, deployment status and transactions
    2. Building and signing Safe, Safe-create and Proxy requests
    3. Attaching builder attribution to authenticated requests
    4. Polling submitted transactions until they settle

    Read-only calls need neither a signer nor builder config; ``execute`` and
    ``deploy`` need both.
    """

    def __init__(
        self,
        relayer_url: str,
        chain_id: int,
        signer: Optional[Any] = None,
        builder_config: Optional[BuilderConfig] = None,
        relay_tx_type: Union[RelayerTxType, str] = RelayerTxType.SAFE,
        http_client: Optional[HTTPClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the RelayClient

        Args:
            relayer_url: Relayer base URL (e.g., "https://relayer-v2.polymarket.com")
            chain_id: Chain the wallets live on
            signer: Signer used by execute and deploy
            builder_config: Builder attribution for authenticated calls
            relay_tx_type: Wallet style, SAFE or PROXY
            http_client: Transport to use (a default HTTPClient if omitted)
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ConfigUnsupportedError: If the chain is not supported
            InvalidArgumentError: If the URL doesn't use https (unless it's localhost/127.0.0.1)
        """
        self.relayer_url = _validate_relayer_url(relayer_url)
        self.chain_id = chain_id
        self.contract_config = get_contract_config(chain_id)
        self.signer = signer
        self.builder_config = builder_config
        self.relay_tx_type = RelayerTxType(relay_tx_type or RelayerTxType.SAFE)
        self.http_client = http_client or HTTPClient()
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_network(
        cls,
        network_name: str,
        signer: Optional[Any] = None,
        builder_config: Optional[BuilderConfig] = None,
        relay_tx_type: Union[RelayerTxType, str] = RelayerTxType.SAFE,
        relayer_url: Optional[str] = None,
        **kwargs: Any,
    ) -> "RelayClient":
        """
        Create a client for a named network from the packaged network table.

        Args:
            network_name: Network name (e.g., "polygon", "amoy")
            relayer_url: Override for the network's relayer URL
            **kwargs: Passed through to the constructor

        Raises:
            ConfigUnsupportedError: If the network is unknown
        """
        return cls(
            relayer_url=NetworkConfig.get_relayer_url(network_name, relayer_url),
            chain_id=NetworkConfig.get_chain_id(network_name),
            signer=signer,
            builder_config=builder_config,
            relay_tx_type=relay_tx_type,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Read endpoints
    # ------------------------------------------------------------------

    def get_nonce(
        self,
        signer_address: str,
        signer_type: Union[TransactionType, str],
        cancel_token: Optional[CancelToken] = None,
    ) -> NoncePayload:
        return self._send(
            "GET", GET_NONCE_ENDPOINT,
            params={"address": signer_address, "type": _type_value(signer_type)},
            response_model=NoncePayload,
            cancel_token=cancel_token,
        ) or NoncePayload()

    def get_relay_payload(
        self,
        signer_address: str,
        signer_type: Union[TransactionType, str],
        cancel_token: Optional[CancelToken] = None,
    ) -> RelayPayload:
        return self._send(
            "GET", GET_RELAY_PAYLOAD_ENDPOINT,
            params={"address": signer_address, "type": _type_value(signer_type)},
            response_model=RelayPayload,
            cancel_token=cancel_token,
        ) or RelayPayload()

    def get_transaction(self, transaction_id: str, cancel_token: Optional[CancelToken] = None) -> List[RelayerTransaction]:
        return self._send(
            "GET", GET_TRANSACTION_ENDPOINT,
            params={"id": transaction_id},
            response_model=List[RelayerTransaction],
            cancel_token=cancel_token,
        ) or []

    def get_transactions(self, cancel_token: Optional[CancelToken] = None) -> List[RelayerTransaction]:
        """
        List transactions submitted under this builder.

        Raises:
            InvalidCredentialsError: If builder config is missing or invalid
        """
        return self._send_authed(
            "GET", GET_TRANSACTIONS_ENDPOINT,
            response_model=List[RelayerTransaction],
            cancel_token=cancel_token,
        ) or []

    def get_deployed(self, safe_address: str, cancel_token: Optional[CancelToken] = None) -> bool:
        response = self._send(
            "GET", GET_DEPLOYED_ENDPOINT,
            params={"address": safe_address},
            response_model=GetDeployedResponse,
            cancel_token=cancel_token,
        )
        return bool(response and response.deployed)

    # ------------------------------------------------------------------
    # Wallet addresses
    # ------------------------------------------------------------------

    def get_expected_safe(self) -> str:
        """
        Safe address owned by the signer.

        Raises:
            MissingCapabilityError: If no signer is configured
        """
        return derive_safe_address(self._require_signer().address, self.contract_config.safe.safe_factory)

    def get_expected_proxy_wallet(self) -> str:
        """
        Proxy wallet address owned by the signer.

        Raises:
            MissingCapabilityError: If no signer is configured
            ConfigUnsupportedError: If the chain has no proxy factory
        """
        return derive_proxy_wallet_address(self._require_signer().address, self.contract_config.proxy.proxy_factory)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def execute(
        self,
        txns: Iterable[Union[Transaction, dict]],
        metadata: str = "",
        cancel_token: Optional[CancelToken] = None,
    ) -> ClientRelayerTransactionResponse:
        """
        Sign and submit a batch of calls from the signer's wallet.

        Args:
            txns: Calls to make, as Transaction models or ``{to, data, value}`` dicts
            metadata: Free-form metadata stored with the transaction
            cancel_token: Cancellation for every network call and wait

        Returns:
            Handle on the submitted transaction

        Raises:
            MissingCapabilityError: If no signer is configured
            InvalidArgumentError: If ``txns`` is empty or a call is malformed
            ConfigUnsupportedError: If the wallet style is not supported on this chain
            SafeNotDeployedError: If the Safe has not been deployed yet
            InvalidCredentialsError: If builder config is missing or invalid
        """
        signer = self._require_signer()
        self._require_builder_config()
        calls = [tx if isinstance(tx, Transaction) else Transaction.model_validate(tx) for tx in txns]
        if not calls:
            raise InvalidArgumentError("no transactions to execute", field="transactions")
        token = ensure_token(cancel_token)

        if self.relay_tx_type == RelayerTxType.SAFE:
            request = self._build_safe_request(signer, calls, metadata, token)
        else:
            request = self._build_proxy_request(signer, calls, metadata, token)
        return self._submit(request, token)

    def _build_safe_request(self, signer: Any, calls: List[Transaction], metadata: str, token: CancelToken) -> TransactionRequest:
        if not is_safe_contract_config_valid(self.contract_config.safe):
            raise ConfigUnsupportedError(f"Safe contracts are not configured for chain {self.chain_id}")

        safe = self.get_expected_safe()
        if not self.get_deployed(safe, cancel_token=token):
            raise SafeNotDeployedError()

        nonce = self.get_nonce(signer.address, TransactionType.SAFE, cancel_token=token)
        if not nonce.nonce:
            raise DecodeError("invalid nonce payload received")

        args = SafeTransactionArgs(
            from_address=signer.address,
            nonce=nonce.nonce,
            chain_id=self.chain_id,
            transactions=to_safe_transactions(calls),
        )
        return build_safe_transaction_request(signer, args, self.contract_config.safe, metadata)

    def _build_proxy_request(self, signer: Any, calls: List[Transaction], metadata: str, token: CancelToken) -> TransactionRequest:
        if not is_proxy_contract_config_valid(self.contract_config.proxy):
            raise ConfigUnsupportedError(f"Proxy contracts are not configured for chain {self.chain_id}")

        relay_payload = self.get_relay_payload(signer.address, TransactionType.PROXY, cancel_token=token)
        if not relay_payload.address or not relay_payload.nonce:
            raise DecodeError("invalid relay payload received")

        args = ProxyTransactionArgs(
            from_address=signer.address,
            nonce=relay_payload.nonce,
            gas_price="0",
            data=encode_proxy_transaction_data(to_proxy_transactions(calls)),
            relay=relay_payload.address,
        )
        return build_proxy_transaction_request(signer, args, self.contract_config.proxy, metadata, cancel_token=token)

    def deploy(self, cancel_token: Optional[CancelToken] = None) -> ClientRelayerTransactionResponse:
        """
        Deploy the signer's Safe through the Safe factory.

        Raises:
            MissingCapabilityError: If no signer is configured
            SafeAlreadyDeployedError: If the Safe already exists
            ConfigUnsupportedError: If Safe contracts are not configured
            InvalidCredentialsError: If builder config is missing or invalid
        """
        signer = self._require_signer()
        self._require_builder_config()
        token = ensure_token(cancel_token)
        if not is_safe_contract_config_valid(self.contract_config.safe):
            raise ConfigUnsupportedError(f"Safe contracts are not configured for chain {self.chain_id}")

        safe = self.get_expected_safe()
        if self.get_deployed(safe, cancel_token=token):
            raise SafeAlreadyDeployedError()

        args = SafeCreateTransactionArgs(
            from_address=signer.address,
            chain_id=self.chain_id,
            payment_token=ZERO_ADDRESS,
            payment="0",
            payment_receiver=ZERO_ADDRESS,
        )
        request = build_safe_create_transaction_request(signer, self.contract_config.safe, args)
        return self._submit(request, token)

    def _submit(self, request: TransactionRequest, token: CancelToken) -> ClientRelayerTransactionResponse:
        response = self._send_authed(
            "POST", SUBMIT_TRANSACTION_ENDPOINT,
            body=request.to_json(),
            response_model=RelayerTransactionResponse,
            cancel_token=token,
        ) or RelayerTransactionResponse()

        self.logger.info(
            f"Submitted {request.type.value} transaction {response.transaction_id} "
            f"for wallet {request.proxy_wallet} (state: {response.state})"
        )
        return ClientRelayerTransactionResponse(
            transaction_id=response.transaction_id,
            state=response.state,
            transaction_hash=response.transaction_hash or response.hash,
            client=self,
        )

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def poll_until_state(
        self,
        transaction_id: str,
        states: Iterable[StateLike],
        fail_state: Optional[StateLike] = None,
        max_polls: int = DEFAULT_MAX_POLLS,
        poll_frequency: float = DEFAULT_POLL_FREQUENCY,
        cancel_token: Optional[CancelToken] = None,
    ) -> RelayerTransaction:
        """
        Poll a transaction until it reaches one of ``states``.

        Args:
            transaction_id: Relayer transaction id
            states: Target states
            fail_state: State that aborts polling with TransactionFailedError
            max_polls: Number of fetches; values <= 0 mean 10
            poll_frequency: Seconds between fetches; values < 1 mean 2
            cancel_token: Cancellation for fetches and waits

        Returns:
            The transaction in its target state

        Raises:
            TransactionFailedError: If the fail state is reached
            TransactionTimeoutError: If the polls run out
            OperationCancelledError: If the token fires
        """
        token = ensure_token(cancel_token)
        targets = {_state_value(s) for s in states}
        failed = _state_value(fail_state) if fail_state else None
        if max_polls <= 0:
            max_polls = DEFAULT_MAX_POLLS
        if poll_frequency < MIN_POLL_FREQUENCY:
            poll_frequency = DEFAULT_POLL_FREQUENCY

        self.logger.debug(f"Polling transaction {transaction_id} for {sorted(targets)} (max {max_polls} polls)")
        for poll in range(1, max_polls + 1):
            token.raise_if_cancelled()
            txns = self.get_transaction(transaction_id, cancel_token=token)
            if txns:
                txn = txns[0]
                if txn.state in targets:
                    self.logger.info(f"Transaction {transaction_id} reached {txn.state}")
                    return txn
                if failed is not None and txn.state == failed:
                    self.logger.error(f"Transaction {transaction_id} failed onchain: {txn.transaction_hash}")
                    raise TransactionFailedError(txn.transaction_hash)
            if poll < max_polls:
                token.sleep(poll_frequency)

        raise TransactionTimeoutError()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _require_signer(self) -> Any:
        if self.signer is None:
            raise MissingCapabilityError()
        return self.signer

    def _require_builder_config(self) -> BuilderConfig:
        if self.builder_config is None or not self.builder_config.is_valid():
            raise InvalidCredentialsError("valid builder config is required for authenticated requests")
        return self.builder_config

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
        body: Optional[str] = None,
        response_model: Any = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> Any:
        return self.http_client.request(
            method,
            self.relayer_url + path,
            params=params,
            headers=headers,
            body=body,
            response_model=response_model,
            cancel_token=cancel_token,
        )

    def _send_authed(
        self,
        method: str,
        path: str,
        body: Optional[str] = None,
        response_model: Any = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> Any:
        headers = self._require_builder_config().headers(method, path, body, cancel_token=cancel_token)
        return self._send(method, path, headers=headers, body=body, response_model=response_model, cancel_token=cancel_token)
