"""Pydantic request payloads and response schemas.

Payloads carry money as ``Decimal`` major units; response schemas render the
stored minor units as ``"0.00"`` strings.
"""
