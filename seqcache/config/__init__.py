"""Configuration for seqcache."""
