"""JSON-RPC 2.0 sideload transport over stdio."""
