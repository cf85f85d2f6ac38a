"""Built-in sample sources for every diagram language."""

from dataclasses import asdict, dataclass
from typing import Optional

from .exceptions import UnsupportedDiagramTypeError
from .models import DiagramType


@dataclass(frozen=True)
class DiagramExample:
    name: str
    description: str
    content: str

    def to_dict(self) -> dict:
        return asdict(self)


EXAMPLES: dict[DiagramType, list[DiagramExample]] = {
    DiagramType.CLASS: [
        DiagramExample(
            name="Basic Library System",
            description="A simple library management system with books, users, and lending",
            content="""class Book {
  - title: string
  - author: string
  - isbn: string
  - isAvailable: boolean
  + borrow(): void
  + return(): void
  + getInfo(): string
}

class User {
  - name: string
  - id: number
  - email: string
  - borrowedBooks: Book[]
  + borrowBook(book: Book): boolean
  + returnBook(book: Book): void
  + getProfile(): UserProfile
}

class Member extends User {
  - memberSince: Date
  + renewMembership(): void
}

class Librarian extends User {
  - employeeId: string
  - permissions: string[]
  + manageInventory(): void
  + generateReports(): Report[]
}""",
        ),
        DiagramExample(
            name="E-commerce System",
            description="Online shopping platform with products, orders, and carts",
            content="""class Product {
  - id: string
  - name: string
  - price: number
  + updatePrice(newPrice: number): void
  + checkAvailability(): boolean
}

class Order {
  - orderId: string
  - items: OrderItem[]
  - totalAmount: number
  + calculateTotal(): number
  + processPayment(): boolean
}

class ShoppingCart {
  - items: CartItem[]
  + addItem(product: Product, quantity: number): void
  + removeItem(productId: string): void
  + checkout(): Order
}""",
        ),
    ],
    DiagramType.SEQUENCE: [
        DiagramExample(
            name="User Login Process",
            description="Authentication flow showing user login with validation",
            content="""User -> LoginPage: enters credentials
LoginPage -> AuthService: validateCredentials(username, password)
AuthService -> Database: checkUserExists(username)
Database --> AuthService: userRecord
AuthService -> PasswordService: verifyPassword(password, hashedPassword)
PasswordService --> AuthService: isValid
AuthService -> TokenService: generateToken(userId)
TokenService --> AuthService: authToken
AuthService --> LoginPage: loginSuccess(token)
LoginPage -> User: redirectToDashboard()""",
        ),
        DiagramExample(
            name="Online Order Processing",
            description="E-commerce order flow from cart to payment completion",
            content="""Customer -> ShoppingCart: reviewItems()
ShoppingCart --> Customer: displayCartSummary()
Customer -> CheckoutPage: proceedToCheckout()
CheckoutPage -> PaymentService: initiatePayment(orderDetails)
PaymentService -> PaymentGateway: processPayment(cardInfo, amount)
PaymentGateway --> PaymentService: paymentSuccess(transactionId)
PaymentService -> OrderService: createOrder(orderDetails, transactionId)
OrderService -> NotificationService: sendOrderConfirmation(customer)
NotificationService --> Customer: orderConfirmationEmail()""",
        ),
    ],
    DiagramType.FLOW: [
        DiagramExample(
            name="User Login Process",
            description="Simple user authentication flowchart",
            content="""start -> input_credentials: Start Login
input_credentials -> validate: Enter Username/Password
validate -> check_db: Validate Credentials
check_db -> valid?: Check Database
valid? -> success: [Yes] Valid Credentials
valid? -> retry: [No] Invalid Credentials
success -> dashboard: Login Successful
retry -> attempts?: Check Attempts
attempts? -> locked: [3+] Account Locked
attempts? -> input_credentials: [<3] Try Again
locked -> contact_admin: Contact Administrator
dashboard -> end: Access Granted
contact_admin -> end: Process Complete""",
        ),
        DiagramExample(
            name="Order Processing Workflow",
            description="E-commerce order processing flowchart",
            content="""start -> receive_order: New Order Received
receive_order -> check_inventory: Check Product Availability
check_inventory -> in_stock?: Items Available?
in_stock? -> process_payment: [Yes] Process Payment
in_stock? -> backorder: [No] Create Backorder
process_payment -> payment_ok?: Payment Successful?
payment_ok? -> ship_order: [Yes] Prepare Shipment
payment_ok? -> payment_failed: [No] Payment Failed
ship_order -> notify_customer: Send Confirmation Email
notify_customer -> end: Order Complete
payment_failed -> retry_payment: Retry Payment
retry_payment -> process_payment: Process Again
backorder -> end: Wait for Restock""",
        ),
    ],
    DiagramType.USECASE: [
        DiagramExample(
            name="Library Management System",
            description="Use cases for a digital library system",
            content="""actor Student
actor Librarian
actor Administrator

Student -> (Search Books)
Student -> (Borrow Book)
Student -> (Return Book)
Student -> (Pay Fines)

Librarian -> (Search Books)
Librarian -> (Manage Inventory)
Librarian -> (Generate Reports)

Administrator -> (Manage Users)
Administrator -> (Generate Reports)

(Borrow Book) -> (Search Books): includes""",
        ),
    ],
    DiagramType.MINDMAP: [
        DiagramExample(
            name="Project Management",
            description="Key aspects of effective project management",
            content="""Project Management
  Planning
    Scope Definition
    Timeline
    Resources
  Execution
    Team Management
    Risk Management
    Quality Control
  Monitoring
    Progress Tracking
    Budget Control
  Methodologies
    Agile
      Scrum
      Kanban
    Waterfall""",
        ),
    ],
}


def get_examples(diagram_type: DiagramType | str) -> list[DiagramExample]:
    """All examples for a diagram type."""
    try:
        dtype = DiagramType(diagram_type)
    except ValueError:
        raise UnsupportedDiagramTypeError(diagram_type)
    if dtype not in EXAMPLES:
        raise UnsupportedDiagramTypeError(dtype.value)
    return list(EXAMPLES[dtype])


def get_example(diagram_type: DiagramType | str, name: Optional[str] = None) -> DiagramExample:
    """An example by name, or the first one for the type."""
    examples = get_examples(diagram_type)
    if name is None:
        return examples[0]
    for example in examples:
        if example.name.lower() == name.lower():
            return example
    raise KeyError(f"No example named {name!r}")
