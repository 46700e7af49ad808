"""
Relay Dashboard: DLQ monitor for the HL7 order/report relay

Operator-facing monitoring controller.
Responsibilities:
- Poll the relay API for stats, failed messages and health
- Filter the dead-letter queue client-side
- Requeue failed messages on operator request
- Expose the view state over a small Flask JSON surface
"""
