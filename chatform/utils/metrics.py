# /chatform/utils/metrics.py

from prometheus_client import Counter, Histogram, Gauge

# All Prometheus metrics used by the chat form engine and its HTTP adapter.

# Engine Metrics
steps_executed_counter = Counter('chatform_steps_executed_total', 'Template steps executed', ['kind'])
validation_failures_counter = Counter('chatform_validation_failures_total', 'Submitted answers rejected by a validation rule')
conversations_counter = Counter('chatform_conversations_total', 'Conversations by outcome', ['outcome'])
rejected_submissions_counter = Counter('chatform_rejected_submissions_total', 'Submissions received while not waiting for input')

# Session Metrics
active_sessions_gauge = Gauge('chatform_active_sessions', 'Number of live conversations held in memory')

# Performance Metrics
response_time_histogram = Histogram('chatform_response_time_seconds', 'Response time in seconds', ['endpoint'])
