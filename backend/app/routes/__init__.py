# Routes package init
"""
FinSight Backend — API Routes Package
=======================================

Route Inventory:
    - health.py:   GET  /                 (liveness)
                   GET  /health           (database + LLM provider status)
    - auth.py:     POST /login            (token + session cookie)
                   POST /signin           (create account)
    - advisor.py:  POST /analyze          (investment suggestions, auth)
                   GET  /market-stats     (market summary, auth)

Routes stay thin: parse the request, call a service, shape the response.
"""
