"""
Fix Outcome Model
=================
Pydantic model tracking what the fixer did with one FixPlan.

Fields:
    applied_fixes  : issue keys the fixer reports as fixed
    skipped_fixes  : issue keys the fixer declined or could not fix
    tests_written  : test files added or extended (coverage debt repayment)
    files_modified : every file touched; used for rollback on verify failure
    notes          : free-text summary from the fixer
"""
from typing import List

from pydantic import BaseModel


class FixOutcome(BaseModel):
    applied_fixes: List[str] = []
    skipped_fixes: List[str] = []
    tests_written: List[str] = []
    files_modified: List[str] = []
    notes: str = ""
