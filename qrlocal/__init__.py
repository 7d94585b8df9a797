"""QR Local: a local-network URL shortener with base32 ids and QR codes."""
