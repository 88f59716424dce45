"""
Scan Services

1. auditors/ - run the accessibility check against a URL
   - remote.py: PageSpeed Insights API
   - headless.py: Selenium + axe-core

2. store.py - ScanRecordStore, persistence of the scans table

3. orchestrator.py - ScanOrchestrator, submission and scan lifecycle

4. scoring.py - score formulas and impact buckets

5. translator.py - French titles and remediation text for findings
"""
