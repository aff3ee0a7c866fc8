from jobboard.models.user import User, StudentProfile, EmployerProfile, saved_jobs
from jobboard.models.job import Job, ScreeningQuestion, Application
from jobboard.models.notification import Notification
