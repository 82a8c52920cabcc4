"""
Operational CLI for the SIEM dashboard triage client.
"""
