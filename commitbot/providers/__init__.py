"""Backend drivers and the wire-level pieces they share."""
