"""
OpenCode Bridge Tests Module

Test suite for the OpenCode bridge.

Test Coverage:
- Wire models and event decoding
- Port discovery from sidecar output
- Supervisor start/stop lifecycle against a fake process
- Session client error mapping
- Event stream reassembly and topic routing
- Event bus delivery
- FastAPI command boundary
"""
