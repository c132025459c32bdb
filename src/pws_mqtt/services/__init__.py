"""
Shared infrastructure.

- http.py  - requests session factory (retry adapter, default timeout, headers)
- mqtt.py  - paho-mqtt broker adapter emitting lifecycle events
"""
