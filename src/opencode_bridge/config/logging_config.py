"""
Bridge Logging Configuration

Simple structured logging shared by every bridge component.
"""

import logging
import os

import structlog

# Configure simple structured logging for the bridge
logging.basicConfig(
    level=os.getenv("OPENCODE_BRIDGE_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Create bridge logger
bridge_logger = structlog.get_logger("opencode_bridge")

