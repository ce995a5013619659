"""
Unity Builder Client Module
============================

RelayConnection and UnityClient for driving a Unity Editor through the
Unity Bridge Relay Server.

Protocol: 4-byte big-endian framing with JSON payloads, one TCP
connection per request.
"""

from __future__ import annotations

import builtins
import json
import logging
import socket
import struct
import time
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from unity_builder.config import (
    DEFAULT_RELAY_HOST,
    DEFAULT_RELAY_PORT,
    DEFAULT_TIMEOUT_MS,
    HEADER_SIZE,
    MAX_PAYLOAD_BYTES,
    BuilderConfig,
)
from unity_builder.exceptions import (
    ConnectionError,
    InstanceError,
    ProtocolError,
    TimeoutError,
    UnityBuilderError,
)

if TYPE_CHECKING:
    from unity_builder.api import AddressablesAPI, BuildAPI, PlayerSettingsAPI

logger = logging.getLogger(__name__)

RETRYABLE_CODES = frozenset({"INSTANCE_RELOADING", "INSTANCE_BUSY", "TIMEOUT"})

# Type alias for retry callback: (code, message, attempt, backoff_ms)
RetryCallback = Callable[[str, str, int, int], None]


def _generate_client_id() -> str:
    return str(uuid.uuid4())[:12]


def _generate_request_id(client_id: str) -> str:
    return f"{client_id}:{uuid.uuid4()}"


def encode_frame(payload: dict[str, Any]) -> bytes:
    """Length-prefix a JSON payload.

    Raises:
        ProtocolError: If the encoded payload exceeds MAX_PAYLOAD_BYTES.
    """
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    if len(body) > MAX_PAYLOAD_BYTES:
        raise ProtocolError(f"Payload too large: {len(body)} > {MAX_PAYLOAD_BYTES}", "PAYLOAD_TOO_LARGE")
    return struct.pack(">I", len(body)) + body


# =============================================================================
# Relay Connection
# =============================================================================


class RelayConnection:
    """Connection to Unity Bridge Relay Server.

    Attributes:
        host: Relay server hostname.
        port: Relay server port.
        timeout: Socket timeout in seconds.
        instance: Target Unity instance path (optional).
        timeout_ms: Default command timeout in milliseconds.
        retry_initial_ms: Initial retry interval in milliseconds.
        retry_max_ms: Maximum retry interval in milliseconds.
        retry_max_time_ms: Maximum total retry time in milliseconds.
        on_retry: Optional callback for retry events.
    """

    def __init__(
        self,
        host: str = DEFAULT_RELAY_HOST,
        port: int = DEFAULT_RELAY_PORT,
        timeout: float = 5.0,
        instance: str | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        retry_initial_ms: int = 500,
        retry_max_ms: int = 8000,
        retry_max_time_ms: int = 30000,
        on_retry: RetryCallback | None = None,
    ) -> None:
        """Initialize relay connection.

        Args:
            host: Relay server hostname (default: 127.0.0.1).
            port: Relay server port (default: 6500).
            timeout: Socket timeout in seconds (default: 5.0).
            instance: Target Unity instance path (optional).
            timeout_ms: Default command timeout in milliseconds (default: 30000).
            retry_initial_ms: Initial retry interval in milliseconds (default: 500).
            retry_max_ms: Maximum retry interval in milliseconds (default: 8000).
            retry_max_time_ms: Maximum total retry time in milliseconds (default: 30000).
                0 disables retries.
            on_retry: Optional callback(code, message, attempt, backoff_ms) for retry events.
        """
        self.host = host
        self.port = port
        self.timeout = timeout
        self.instance = instance
        self.timeout_ms = timeout_ms
        self.retry_initial_ms = retry_initial_ms
        self.retry_max_ms = retry_max_ms
        self.retry_max_time_ms = retry_max_time_ms
        self.on_retry = on_retry
        self._client_id = _generate_client_id()

    def _connect(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.settimeout(self.timeout)
            sock.connect((self.host, self.port))
        except OSError as e:
            sock.close()
            raise ConnectionError(
                f"Cannot connect to Relay Server at {self.host}:{self.port}. "
                "Is the Unity Editor running with the bridge package installed?",
                "CONNECTION_FAILED",
            ) from e
        return sock

    def _recv_exact(self, sock: socket.socket, size: int) -> bytes:
        chunks: list[bytes] = []
        remaining = size
        while remaining > 0:
            chunk = sock.recv(min(remaining, 65536))
            if not chunk:
                raise ProtocolError("Connection closed while reading payload", "PROTOCOL_ERROR")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _read_frame(self, sock: socket.socket, timeout: float) -> dict[str, Any]:
        """Read one framed message.

        Raises:
            ProtocolError: If header is incomplete, payload too large, or invalid JSON.
        """
        sock.settimeout(timeout)

        header = sock.recv(HEADER_SIZE)
        if len(header) != HEADER_SIZE:
            raise ProtocolError(f"Expected {HEADER_SIZE}-byte header, got {len(header)} bytes", "PROTOCOL_ERROR")

        (length,) = struct.unpack(">I", header)
        if length > MAX_PAYLOAD_BYTES:
            raise ProtocolError(f"Payload too large: {length} > {MAX_PAYLOAD_BYTES}", "PAYLOAD_TOO_LARGE")

        payload = self._recv_exact(sock, length)
        try:
            result: dict[str, Any] = json.loads(payload.decode("utf-8"))
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Invalid JSON response: {e}", "MALFORMED_JSON") from e
        return result

    def send_request(
        self,
        command: str,
        params: dict[str, Any],
        timeout_ms: int | None = None,
        retry_max_time_ms: int | None = None,
    ) -> dict[str, Any]:
        """Send a REQUEST, retrying transient instance errors with exponential backoff.

        Retried codes: INSTANCE_RELOADING, INSTANCE_BUSY, TIMEOUT. Everything
        else is raised to the caller unchanged. A ``retry_max_time_ms`` of 0
        sends the request exactly once.

        Args:
            command: Relay command name (e.g. "build", "player_settings").
            params: Command parameters, including the ``action``.
            timeout_ms: Command timeout (default: connection timeout_ms).
            retry_max_time_ms: Retry window (default: connection retry_max_time_ms).

        Returns:
            Response data dictionary.

        Raises:
            TimeoutError: If max retry time exceeded.
            ConnectionError: If cannot connect to relay server.
            ProtocolError: If protocol error occurs.
            InstanceError: If instance error (non-retryable).
            UnityBuilderError: If command fails.
        """
        timeout_ms = timeout_ms if timeout_ms is not None else self.timeout_ms
        retry_max_time_ms = retry_max_time_ms if retry_max_time_ms is not None else self.retry_max_time_ms

        request_id = _generate_request_id(self._client_id)
        start_time = time.time()
        attempt = 0

        while True:
            elapsed_ms = (time.time() - start_time) * 1000
            if attempt > 0 and elapsed_ms >= retry_max_time_ms:
                raise TimeoutError(f"Max retry time exceeded ({retry_max_time_ms}ms) for '{command}'", "RETRY_TIMEOUT")

            try:
                return self._send_request_once(request_id, command, params, timeout_ms)
            except (InstanceError, TimeoutError) as e:
                code = e.code or "UNKNOWN"
                if code not in RETRYABLE_CODES or retry_max_time_ms <= 0:
                    raise

                backoff_ms = min(self.retry_initial_ms * (2**attempt), self.retry_max_ms)
                if elapsed_ms + backoff_ms >= retry_max_time_ms:
                    raise TimeoutError(
                        f"Max retry time would be exceeded for '{command}' "
                        f"(elapsed: {elapsed_ms:.0f}ms, next backoff: {backoff_ms}ms)",
                        "RETRY_TIMEOUT",
                    ) from e

                logger.debug(f"Retrying '{command}' after {code} (attempt {attempt + 1}, {backoff_ms}ms)")
                if self.on_retry:
                    self.on_retry(code, e.message, attempt + 1, backoff_ms)

                time.sleep(backoff_ms / 1000)
                attempt += 1

    def _send_request_once(
        self,
        request_id: str,
        command: str,
        params: dict[str, Any],
        timeout_ms: int,
    ) -> dict[str, Any]:
        """Send a single REQUEST message (no retry).

        Args:
            request_id: Unique request identifier, shared by retries of one request.
            command: Command name.
            params: Command parameters.
            timeout_ms: Command timeout in milliseconds.

        Returns:
            Response data dictionary.

        Raises:
            ConnectionError: If the relay server is unreachable.
            TimeoutError: If no response arrives within the read timeout.
        """
        message: dict[str, Any] = {
            "type": "REQUEST",
            "id": request_id,
            "command": command,
            "params": params,
            "timeout_ms": timeout_ms,
            "ts": int(time.time() * 1000),
        }
        if self.instance:
            message["instance"] = self.instance

        # Long engine commands answer only when done; wait at least as long as the command may run.
        read_timeout = max(self.timeout, timeout_ms / 1000)

        sock = self._connect()
        try:
            sock.sendall(encode_frame(message))
            try:
                response = self._read_frame(sock, read_timeout)
            except builtins.TimeoutError as e:
                raise TimeoutError(f"Response timed out for '{command}' (timeout: {read_timeout}s)", "TIMEOUT") from e
            return self._handle_response(response, command)
        finally:
            sock.close()

    def _handle_response(self, response: dict[str, Any], command: str) -> dict[str, Any]:
        """Map a RESPONSE / ERROR message to data or an exception."""
        msg_type = response.get("type")

        if msg_type == "ERROR":
            error = response.get("error", {})
            code = error.get("code", "UNKNOWN_ERROR")
            message = error.get("message", "Unknown error")

            if code in ("INSTANCE_NOT_FOUND", "INSTANCE_RELOADING", "INSTANCE_BUSY"):
                raise InstanceError(message, code)
            if code == "TIMEOUT":
                raise TimeoutError(message, code)
            raise UnityBuilderError(message, code)

        if msg_type == "RESPONSE":
            if not response.get("success", False):
                error_info = response.get("error") or {}
                raise UnityBuilderError(
                    error_info.get("message", f"{command} failed"),
                    error_info.get("code", "COMMAND_FAILED"),
                )
            data: dict[str, Any] = response.get("data", {})
            return data

        if msg_type == "INSTANCES":
            instances: dict[str, Any] = response.get("data", {})
            return instances

        raise ProtocolError(f"Unexpected response type: {msg_type}", "PROTOCOL_ERROR")

    def list_instances(self) -> list[dict[str, Any]]:
        """List Unity instances connected to the relay.

        Returns:
            List of instance info dictionaries (instance_id, project_name,
            unity_version, status, is_default).

        Raises:
            ProtocolError: If the relay answers with anything but INSTANCES.
        """
        message = {
            "type": "LIST_INSTANCES",
            "id": _generate_request_id(self._client_id),
            "ts": int(time.time() * 1000),
        }

        sock = self._connect()
        try:
            sock.sendall(encode_frame(message))
            response = self._read_frame(sock, self.timeout)
        finally:
            sock.close()

        if response.get("type") != "INSTANCES":
            raise ProtocolError(f"Unexpected response type: {response.get('type')}", "PROTOCOL_ERROR")
        instances: list[dict[str, Any]] = response.get("data", {}).get("instances", [])
        return instances


# =============================================================================
# Unity Client
# =============================================================================


class UnityClient:
    """Editor operations a build needs.

    Usage:
        client = UnityClient.from_config(BuilderConfig.load())

        client.player_settings.set_bundle_version("1.2")
        client.addressables.build()
        client.build.build_player(options)

    Attributes:
        player_settings: PlayerSettings / EditorUserBuildSettings access.
        build: Build scenes and player builds.
        addressables: Addressables content builds.
    """

    def __init__(self, conn: RelayConnection) -> None:
        self._conn = conn

        # Lazy import to avoid circular dependencies
        from unity_builder.api import AddressablesAPI, BuildAPI, PlayerSettingsAPI

        self.player_settings: PlayerSettingsAPI = PlayerSettingsAPI(conn)
        self.build: BuildAPI = BuildAPI(conn)
        self.addressables: AddressablesAPI = AddressablesAPI(conn)

    @classmethod
    def from_config(cls, config: BuilderConfig, on_retry: RetryCallback | None = None) -> UnityClient:
        """Create a client from loaded configuration.

        Args:
            config: Relay address, instance and timeouts.
            on_retry: Optional callback(code, message, attempt, backoff_ms) for retry events.
        """
        return cls(
            RelayConnection(
                host=config.relay_host,
                port=config.relay_port,
                timeout=config.timeout,
                instance=config.instance,
                timeout_ms=config.timeout_ms,
                retry_initial_ms=config.retry_initial_ms,
                retry_max_ms=config.retry_max_ms,
                retry_max_time_ms=config.retry_max_time_ms,
                on_retry=on_retry,
            )
        )

    def list_instances(self) -> list[dict[str, Any]]:
        return self._conn.list_instances()
