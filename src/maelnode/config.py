"""TOML-based configuration for maelnode.

Provides ``load_config`` / ``discover_config`` for loading
``maelnode.toml`` and a small hierarchy of frozen dataclasses for the
gossip, mailbox, and dispatch settings.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from maelnode.core.mailbox import MailboxOverflowStrategy
from maelnode.dispatch import ViolationPolicy

__all__ = [
    "CONFIG_FILENAME",
    "DispatchConfig",
    "GossipConfig",
    "MailboxConfig",
    "MailboxStrategy",
    "NodeConfig",
    "OnViolation",
    "discover_config",
    "load_config",
]

CONFIG_FILENAME = "maelnode.toml"

type MailboxStrategy = Literal["drop_new", "drop_oldest", "backpressure"]
type OnViolation = Literal["log", "fail"]


@dataclass(frozen=True)
class GossipConfig:
    """Gossip timer tuning.

    Parameters
    ----------
    interval : float
        Seconds between gossip ticks.

    Examples
    --------
    >>> GossipConfig(interval=0.1)
    GossipConfig(interval=0.1)
    """

    interval: float = 0.25

    def __post_init__(self) -> None:
        if self.interval <= 0:
            msg = f"gossip.interval must be positive, got {self.interval}"
            raise ValueError(msg)


@dataclass(frozen=True)
class MailboxConfig:
    """Event mailbox settings.

    Parameters
    ----------
    capacity : int | None
        Maximum number of queued events. ``None`` for unbounded.
    strategy : MailboxStrategy
        Overflow strategy when bounded: ``"drop_new"``, ``"drop_oldest"``,
        or ``"backpressure"`` (producers block).

    Examples
    --------
    >>> MailboxConfig(capacity=1000, strategy="drop_oldest")
    MailboxConfig(capacity=1000, strategy='drop_oldest')
    """

    capacity: int | None = None
    strategy: MailboxStrategy = "backpressure"

    def __post_init__(self) -> None:
        if self.capacity is not None and self.capacity < 1:
            msg = f"mailbox.capacity must be positive, got {self.capacity}"
            raise ValueError(msg)
        if self.strategy not in MailboxOverflowStrategy.__members__:
            msg = f"Unknown mailbox.strategy: {self.strategy!r}"
            raise ValueError(msg)

    @property
    def overflow(self) -> MailboxOverflowStrategy:
        return MailboxOverflowStrategy[self.strategy]


@dataclass(frozen=True)
class DispatchConfig:
    """Dispatcher policy.

    Parameters
    ----------
    on_violation : OnViolation
        ``"log"`` to warn and keep serving when a node receives a message
        it should never get, ``"fail"`` to stop the node.
    """

    on_violation: OnViolation = "log"

    def __post_init__(self) -> None:
        if self.on_violation not in ("log", "fail"):
            msg = f"Unknown dispatch.on_violation: {self.on_violation!r}"
            raise ValueError(msg)

    @property
    def violation_policy(self) -> ViolationPolicy:
        return ViolationPolicy(self.on_violation)


@dataclass(frozen=True)
class NodeConfig:
    """Top-level configuration container for a node.

    Typically created via ``load_config()`` but can be constructed manually.

    Parameters
    ----------
    log_level : str
        Level name passed to ``logging`` (``"DEBUG"``, ``"INFO"``, ...).
    gossip : GossipConfig
        Gossip timer tuning.
    mailbox : MailboxConfig
        Event mailbox settings.
    dispatch : DispatchConfig
        Dispatcher policy.

    Examples
    --------
    >>> config = NodeConfig(log_level="DEBUG")
    >>> config.gossip.interval
    0.25
    """

    log_level: str = "INFO"
    gossip: GossipConfig = field(default_factory=GossipConfig)
    mailbox: MailboxConfig = field(default_factory=MailboxConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)

    def __post_init__(self) -> None:
        if self.log_level not in logging.getLevelNamesMapping():
            msg = f"Unknown node.log_level: {self.log_level!r}"
            raise ValueError(msg)


def discover_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``maelnode.toml``.

    Parameters
    ----------
    start : Path | None
        Directory to start searching from.

    Returns
    -------
    Path | None
        Path to the discovered config file, or ``None`` if not found.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(path: Path | None = None) -> NodeConfig:
    """Load a ``NodeConfig`` from a TOML file.

    If *path* is ``None``, auto-discovers ``maelnode.toml`` by walking up
    from the current working directory. Returns the default config if no
    file is found.

    Parameters
    ----------
    path : Path | None
        Explicit path to a TOML config file.

    Returns
    -------
    NodeConfig

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.

    Examples
    --------
    >>> config = load_config(Path("maelnode.toml"))
    >>> config.dispatch.on_violation
    'log'
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            return NodeConfig()
        path = discovered

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as f:
        raw = tomllib.load(f)

    node_raw: dict[str, Any] = raw.get("node", {})

    return NodeConfig(
        log_level=str(node_raw.get("log_level", "INFO")).upper(),
        gossip=GossipConfig(**raw.get("gossip", {})),
        mailbox=MailboxConfig(**raw.get("mailbox", {})),
        dispatch=DispatchConfig(**raw.get("dispatch", {})),
    )
