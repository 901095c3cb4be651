"""
Pytest configuration for tests with logging enabled.
"""
import logging
import sys

# Configure logging to show INFO and above by default
# Can be overridden with pytest --log-cli-level flag
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout
)
