"""
Prefect flows.

Flows:
- publish: one fetch → map → publish cycle (``publish-weather``)

The scheduler calls the flow once per tick; it can also be run on its own:

    python -m pws_mqtt.flows.publish
"""
