"""Vehicle Registration Document OCR Service.

Normalizes photos of vehicle registration documents, recognizes their
text at every right-angle orientation with Google Cloud Vision (or
Tesseract) and parses the vehicle and titleholder fields for a web
front end.
"""
