"""HTTP API for AI debates"""
