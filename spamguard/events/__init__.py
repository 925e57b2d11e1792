"""Forum events and the handlers that react to them."""
