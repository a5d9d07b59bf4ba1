# Domain package initialization
