# Pydantic schemas
from app.schemas.auth import (
    UserRegister,
    UserLogin,
    Token,
    UserResponse,
    LoginResponse,
    ProfileUpdate,
)
from app.schemas.wallet import (
    WalletResponse,
    WalletTransactionResponse,
)
from app.schemas.ads import (
    AdCreate,
    AdResponse,
    AdQuoteResponse,
)
from app.schemas.payments import (
    PaymentInitRequest,
    PaymentInitResponse,
    PaymentResponse,
)
from app.schemas.events import (
    EventResponse,
    TicketResponse,
    TicketPurchaseResponse,
)
from app.schemas.notifications import (
    NotificationResponse,
    UserNotificationResponse,
)
