"""End-to-end scenarios for the wallet bridge.

Each scenario drives the HTTP API the way the two parties of a pairing do
(the requester posting and polling, the wallet claiming and answering) and
checks one aspect of the exchange.
"""
