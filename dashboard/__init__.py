"""
Vehicle scraper dashboard (FastAPI).
"""
