"""
Keyring: where the pipeline publishes and who signs.

Holds the space bindings, the service endpoints and the optional signing key.
Endpoints and spaces come from a TOML file; the signing key comes only from
the environment (or a local .env) and is never written back.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from .chain import DEFAULT_GAS_LIMIT, DEFAULT_RPC_URL
from .ipfs import DEFAULT_API_URL
from .schema import Network

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[import-not-found]

PRIVATE_KEY_ENV = "PRIVATE_KEY"
API_URL_ENV = "GRC20_API_URL"
RPC_URL_ENV = "GRC20_RPC_URL"


@dataclass
class Signer:
    """The held signing key. Kept out of repr so it never reaches logs."""

    private_key: str = field(repr=False)


@dataclass
class SpaceBinding:
    """A space the edits can be applied to."""

    space_id: str
    network: Network = Network.TESTNET
    is_default: bool = False

    def __post_init__(self) -> None:
        self.network = Network(self.network)


@dataclass
class Keyring:
    signer: Signer | None = None
    spaces: list[SpaceBinding] = field(default_factory=list)
    api_url: str = DEFAULT_API_URL
    rpc_url: str = DEFAULT_RPC_URL
    gas_limit: int = DEFAULT_GAS_LIMIT

    @property
    def has_signer(self) -> bool:
        return self.signer is not None

    def get_space(self, space_id: str) -> SpaceBinding | None:
        for binding in self.spaces:
            if binding.space_id == space_id:
                return binding
        return None

    def get_default_space(self) -> SpaceBinding | None:
        """Get the default space binding, if any."""
        for binding in self.spaces:
            if binding.is_default:
                return binding
        return None

    def list_spaces(self) -> list[SpaceBinding]:
        return list(self.spaces)

    def without_signer(self) -> "Keyring":
        """Copy of this keyring in manual-submission mode."""
        return Keyring(
            signer=None,
            spaces=list(self.spaces),
            api_url=self.api_url,
            rpc_url=self.rpc_url,
            gas_limit=self.gas_limit,
        )


def default_keyring_path() -> Path:
    return Path.home() / ".grc20" / "keyring.toml"


def load_keyring(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Keyring:
    """Load endpoints and spaces from keyring.toml, then the key from the environment.

    The keyring file format:

    ```toml
    [api]
    url = "https://api-testnet.grc-20.thegraph.com"

    [chain]
    rpc_url = "https://rpc.ankr.com/eth"
    gas_limit = 300000

    [[spaces]]
    id = "MucL11M5HLWvLSVryrNKPB"
    network = "MAINNET"
    is_default = true
    ```

    A missing file yields the defaults. A malformed file, a space without an
    id or an unknown network raises ValueError. A missing PRIVATE_KEY is not an
    error: the keyring simply has no signer (manual submission mode).
    """
    path = default_keyring_path() if path is None else Path(path)

    data: dict = {}
    if path.exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)

    if environ is None:
        # .env values never override variables already set in the process
        load_dotenv()
        environ = os.environ

    api_data = data.get("api", {})
    chain_data = data.get("chain", {})

    spaces = []
    for space_data in data.get("spaces", []):
        if not space_data.get("id"):
            raise ValueError(f"Space entry without an id in {path}")
        spaces.append(
            SpaceBinding(
                space_id=space_data["id"],
                network=space_data.get("network", Network.TESTNET.value),
                is_default=space_data.get("is_default", False),
            )
        )

    private_key = environ.get(PRIVATE_KEY_ENV)

    return Keyring(
        signer=Signer(private_key) if private_key else None,
        spaces=spaces,
        api_url=environ.get(API_URL_ENV) or api_data.get("url", DEFAULT_API_URL),
        rpc_url=environ.get(RPC_URL_ENV) or chain_data.get("rpc_url", DEFAULT_RPC_URL),
        gas_limit=int(chain_data.get("gas_limit", DEFAULT_GAS_LIMIT)),
    )


def create_keyring(
    private_key: str | None = None,
    spaces: list[SpaceBinding] | None = None,
    api_url: str = DEFAULT_API_URL,
    rpc_url: str = DEFAULT_RPC_URL,
    gas_limit: int = DEFAULT_GAS_LIMIT,
) -> Keyring:
    """Create a keyring programmatically (for testing or embedding)."""
    return Keyring(
        signer=Signer(private_key) if private_key else None,
        spaces=spaces or [],
        api_url=api_url,
        rpc_url=rpc_url,
        gas_limit=gas_limit,
    )
