"""Core protocol functionality for Hue Sync.

This package contains:
- config: BridgeConfig and credential loading
- transport: requests-based HTTP transport
- events: EventBus and TimerArena
- gateway: BridgeGateway for the CLIP v2 REST API
- eventstream: EventStreamReader for the push event stream
- session: StreamSession for entertainment streaming
"""
