#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Generate word cloud and dossier PDFs from a data folder.
"""

# local repo modules
import wordcloud_dossier_press.cli


if __name__ == "__main__":
	wordcloud_dossier_press.cli.main()
