"""
PTT Ledger HTTP API (FastAPI)

- POST /tokens - Mint
- /tokens/{id}/offers - Escrow offers
- POST /tokens/{id}/transfer - Code-authorized transfer
- GET /events - Record stream
- GET /health - Health check

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
