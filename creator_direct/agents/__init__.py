from creator_direct.agents.event_relay import EventRelayAgent, IndexerDispatcher
from creator_direct.agents.health import AgentHealth

__all__ = ["AgentHealth", "EventRelayAgent", "IndexerDispatcher"]
