"""Command line interface for sqlquery"""
