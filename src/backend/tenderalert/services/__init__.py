"""
Domain services: matching, subscriptions, payments, collaboration,
scraping and bid insights.
"""
