"""HostOps core components"""
