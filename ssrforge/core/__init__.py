"""Core deploy machinery: hashing, stage graph, deployer."""
