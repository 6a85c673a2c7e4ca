#!/usr/bin/env python3
"""
Run script for the SpeechFlow pipeline walkthrough
"""
from speechflow.main import main

if __name__ == "__main__":
    main()
