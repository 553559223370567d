from app.models.user import User, Role
from app.models.video import Video
from app.models.transaction import Transaction, TransactionStatus
from app.models.access_token import AccessToken
from app.models.email import EmailOutbox, EmailStatus

# add ALL models here
