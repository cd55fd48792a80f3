"""
Connection settings.

Values come from the process environment, optionally seeded from a dotenv
file (default: ~/.elements-rpc/.env):

    ELEMENTS_RPC_URL       endpoint (default http://127.0.0.1:18884)
    ELEMENTS_RPC_USER      basic auth user
    ELEMENTS_RPC_PASSWORD  basic auth password
    ELEMENTS_RPC_VERBOSE   1/true/yes/on to echo requests and responses
    ELEMENTS_RPC_TIMEOUT   HTTP timeout in seconds
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .rpc.client import RpcClient, TraceSink
from .utils import truthy

CONFIG_DIR = Path.home() / ".elements-rpc"
CONFIG_ENV = CONFIG_DIR / ".env"

DEFAULT_RPC_URL = "http://127.0.0.1:18884"


@dataclass(frozen=True)
class RpcSettings:
    url: str = DEFAULT_RPC_URL
    user: str = ""
    password: str = field(default="", repr=False)
    verbose: bool = False
    timeout: Optional[float] = None

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "RpcSettings":
        """
        Load settings from the environment.

        Args:
            env_file: dotenv file to load first (default: ~/.elements-rpc/.env).
                      Variables already set in the environment win.
                      The default file is optional, an explicit one is not.

        Raises:
            FileNotFoundError: If an explicit env_file does not exist
            ValueError: If ELEMENTS_RPC_TIMEOUT is not a positive number
        """
        if env_file is not None:
            if not env_file.is_file():
                raise FileNotFoundError(f"env file not found: {env_file}")
            load_dotenv(env_file, override=False)
        elif CONFIG_ENV.exists():
            load_dotenv(CONFIG_ENV, override=False)

        timeout = None
        raw_timeout = os.environ.get("ELEMENTS_RPC_TIMEOUT", "").strip()
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ValueError(f"ELEMENTS_RPC_TIMEOUT must be a number, got {raw_timeout!r}")
            if timeout <= 0:
                raise ValueError(f"ELEMENTS_RPC_TIMEOUT must be positive, got {raw_timeout!r}")

        return cls(
            url=os.environ.get("ELEMENTS_RPC_URL") or DEFAULT_RPC_URL,
            user=os.environ.get("ELEMENTS_RPC_USER", ""),
            password=os.environ.get("ELEMENTS_RPC_PASSWORD", ""),
            verbose=truthy(os.environ.get("ELEMENTS_RPC_VERBOSE")),
            timeout=timeout,
        )

    def client(self, trace: Optional[TraceSink] = None) -> RpcClient:
        return RpcClient(
            self.url,
            self.user,
            self.password,
            verbose=self.verbose,
            trace=trace,
            timeout=self.timeout,
        )
