"""
Serverless entry point for the HelpDesk API
"""
import os

# Set environment variables for serverless
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("SLA_MONITOR_INTERVAL", "0")  # No background scheduler in serverless

from mangum import Mangum

from helpdesk.config import settings
from helpdesk.infrastructure.database import init_database
from helpdesk.main import app
from helpdesk.shared.infrastructure.logging import setup_logging
from helpdesk.tickets.infrastructure import SlackClient

# Lifespan is off, so wire what it would have set up
setup_logging(settings.log_level, settings.environment)
init_database()
app.state.slack_client = SlackClient()
app.state.sla_scheduler = None

handler = Mangum(app, lifespan="off")
