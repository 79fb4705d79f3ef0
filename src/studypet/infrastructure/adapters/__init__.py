# Storage and generation adapters
