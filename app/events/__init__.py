"""
Event contracts, publishers and consumers
"""
