"""HTTP and JSON-RPC clients for the backends and chains the engine talks to."""
