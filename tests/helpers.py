"""Shared test data: reviewers, the standard export header and row builders."""

import zipfile

from review_kernel.domain.stages import Actor

STAGES = ("Checker 1", "Checker 2", "Final Checker")

ALICE = Actor("Alice", "Checker 1")
BOB = Actor("Bob", "Checker 2")
CHARLIE = Actor("Charlie", "Final Checker")
DIANA = Actor("Diana", "CFO")

HEADER = [
    "BS/PL",
    "Status",
    "G/L Acct",
    "G/L Account Number",
    "Main Head",
    "Sub head",
    "Responsible Department",
    "Departement SPOC",
    "Departement Reviewer",
]


def account_row(number, name="Cash", dept="Finance", status="Assets", **extra):
    """A data row in HEADER order."""
    values = {
        "BS/PL": extra.get("bs_pl", "BS"),
        "Status": status,
        "G/L Acct": name,
        "G/L Account Number": number,
        "Main Head": extra.get("main_head", "Current Assets"),
        "Sub head": extra.get("sub_head", "Bank"),
        "Responsible Department": dept,
        "Departement SPOC": extra.get("spoc", "Sam"),
        "Departement Reviewer": extra.get("reviewer", "Rita"),
    }
    return [values[h] for h in HEADER]


def replace_zip_member(path, member, data):
    """Rewrite one entry of a zip archive (an .xlsx) in place."""
    with zipfile.ZipFile(path) as src:
        entries = [(info, src.read(info.filename)) for info in src.infolist()]
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as dst:
        for info, content in entries:
            dst.writestr(info, data if info.filename == member else content)
    return path
