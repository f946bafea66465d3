"""
Vercel entry point for Swift Ship Agents API
"""
import os

# Set environment variables for serverless
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("CONVERSATION_SWEEP_INTERVAL", "0")  # No background jobs in serverless

from mangum import Mangum
from swiftship.main import app

# Lambda handler for ASGI app (lifespan on so agents are wired per cold start)
handler = Mangum(app, lifespan="auto")
