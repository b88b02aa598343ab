"""Real-time infrastructure — the websocket bridge.

Learn: Events flow in two layers:
1. websocket.py — transport: accepts the socket, attaches the session,
   parses JSON frames and hands them to the bridge in arrival order
2. bridge.py — logic: replays initial state, runs typed commands against
   the gateways, and fans results out to one or all connections

The bridge never imports FastAPI; tests drive it with fake transports.
"""
