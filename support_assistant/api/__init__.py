"""HTTP query endpoint consumed by the chat front end."""
