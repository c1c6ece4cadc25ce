def test_core_imports() -> None:
    from maelnode import Mailbox, MailboxClosed, MemoryTransport, StreamTransport

    assert Mailbox is not None
    assert issubclass(MailboxClosed, RuntimeError)
    assert MemoryTransport is not None
    assert StreamTransport is not None


def test_import_programs() -> None:
    from maelnode import PROGRAMS, BroadcastEngine, EchoProgram, UniqueIdProgram

    assert set(PROGRAMS) == {"broadcast", "echo", "unique-ids"}
    assert BroadcastEngine is not None
    assert EchoProgram is not None
    assert UniqueIdProgram is not None


def test_import_node() -> None:
    from maelnode import Node, NodeConfig, load_config

    assert callable(load_config)
    assert Node is not None
    assert NodeConfig().gossip.interval == 0.25


def test_errors_are_distinct() -> None:
    from maelnode import ActorFailed, BootstrapError, ParseError, ProtocolViolationError

    assert issubclass(ParseError, ValueError)
    assert len({ActorFailed, BootstrapError, ProtocolViolationError}) == 3
