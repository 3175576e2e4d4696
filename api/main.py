"""
FloodWatch - Vercel Serverless Entry Point
Serves the FastAPI app: pages, live map, reports API.
Instances share no memory; each one rebuilds a signed-in browser's context
from the Supabase tokens in its signed session cookie.
"""

import os
import sys

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from floodwatch.api.main import app

# Vercel serverless handler
handler = app
