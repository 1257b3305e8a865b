"""CLI command modules.

This package contains:
- setup: Coloured click group, help and setup commands
- bridge: register, areas and events commands
- control: light, group, scene, stream-start and stream-stop commands
- helpers: Gateway construction and request running shared by the commands
"""
