from .applicant import Applicant
