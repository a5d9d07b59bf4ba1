# Database package initialization
