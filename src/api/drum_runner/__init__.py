"""`api.drum_machine` の下請けヘルパ群。"""
