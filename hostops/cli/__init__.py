"""HostOps command line interface"""
