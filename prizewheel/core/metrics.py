"""
Prometheus counters for spin and delivery outcomes
"""

from prometheus_client import Counter

SPIN_COUNT = Counter('spins_total', 'Total spin attempts', ['tier', 'status'])
DELIVERY_COUNT = Counter('prize_deliveries_total', 'Total prize delivery attempts', ['channel', 'status'])
FULFILLMENT_COUNT = Counter('manual_fulfillments_total', 'Total admin fulfillments', ['status'])
