"""Pallet planning client: service access, transfer gestures and the pallet cache."""
